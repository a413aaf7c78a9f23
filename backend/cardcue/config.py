from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".cardcue" / "data"
    sqlite_filename: str = "cardcue.db"
    deployment_path: str = "/cardcue"  # first segment isolates dev/prod records
    default_session_size: int = 20
    max_import_bytes: int = 10 * 1024 * 1024

    model_config = {"env_prefix": "CARDCUE_"}

    @property
    def namespace(self) -> str:
        segments = [s for s in self.deployment_path.split("/") if s]
        return f"cardcue:{segments[0] if segments else 'cardcue'}"

    @property
    def deck_key(self) -> str:
        return f"{self.namespace}:deck:v1"

    @property
    def sessions_key(self) -> str:
        return f"{self.namespace}:sessions"

    @property
    def settings_key(self) -> str:
        return f"{self.namespace}:settings"

    @property
    def view_mode_key(self) -> str:
        return f"{self.namespace}:viewMode"


settings = Settings()
