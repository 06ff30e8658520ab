from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # X-trafik (backend externo de tickets)
    XTRAFIK_BASE_URL: str = ""
    XTRAFIK_CLIENT_CERT: str = ""  # Ruta al certificado cliente (PEM)
    XTRAFIK_CLIENT_KEY: str = ""  # Ruta a la llave privada del certificado (PEM)
    XTRAFIK_TIMEOUT_SECONDS: float = 10.0
    XTRAFIK_TICKETS_PATH: str = "/api/Tickets"
    XTRAFIK_UPDATE_METHOD: str = "PUT"  # PUT o PATCH, según el contrato de X-trafik

    APP_ENV: str = "development"  # development o production
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra en .env que no están en el modelo

settings = Settings()
