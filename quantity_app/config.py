from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "quantity-app"
    DATABASE_URL: str = "sqlite:///./quantities.db"
    LOG_LEVEL: str = "INFO"

    # Zero adjustment coefficient zeroes every computed quantity.
    # False: non-blocking warning. True: hard error that blocks save.
    ZERO_COEFFICIENT_IS_ERROR: bool = False

    class Config:
        env_file = ".env"


settings = Settings()
