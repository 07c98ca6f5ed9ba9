from pathlib import Path

from pydantic_settings import BaseSettings

# Fichier .env : backend/.env puis racine du projet
_backend_dir = Path(__file__).resolve().parent.parent
_env_candidates = [_backend_dir / ".env", _backend_dir.parent / ".env"]
_env_file = next((p for p in _env_candidates if p.exists()), ".env")


class Settings(BaseSettings):
    model_config = {"env_file": str(_env_file), "env_file_encoding": "utf-8"}

    # Application
    app_env: str = "development"
    debug: bool = True

    # Geo API (communes)
    geo_api_base: str = "https://geo.api.gouv.fr"
    geo_timeout_seconds: float = 10.0
    suggestion_limit: int = 8

    # DVF - sources par ordre de priorité
    dvf_etalab_url: str = "https://app.dvf.etalab.gouv.fr/api/mutations3/{code}"
    dvf_cquest_url: str = "https://api.cquest.org/dvf?code_commune={code}"
    dvf_opendatasoft_url: str = (
        "https://data.opendatasoft.com/api/explore/v2.1/catalog/datasets/"
        "buildingref-france-demande-de-valeurs-foncieres-geolocalisee-millesime@public/records"
        "?where=code_commune%3D%22{code}%22&limit=100&order_by=date_mutation%20desc"
    )

    # Proxies CORS (ordre de fiabilité)
    cors_relays: list[str] = [
        "https://api.allorigins.win/raw?url=",
        "https://corsproxy.io/?",
        "https://api.codetabs.com/v1/proxy?quest=",
    ]
    source_timeout_seconds: float = 15.0
    price_estimate_timeout_seconds: float = 10.0

    # Sources HTML
    meilleurs_agents_base: str = "https://www.meilleursagents.com/prix-immobilier/"
    linternaute_base: str = "https://www.linternaute.com/ville/"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
