#!filepath: purchase_predict/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from .log_config import LogConfig
from .data_config import DataConfig
from .training_config import TrainingConfig
from .artifact_config import ArtifactConfig

DATA_PATH_ENV = "PURCHASE_PREDICT_DATA_PATH"


def project_root() -> str:
    """
    Project root derived from this file's location:
    purchase_predict/config/app_config.py → purchase_predict/config → purchase_predict → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class AppConfig(BaseModel):
    log: LogConfig = LogConfig()
    data: DataConfig = DataConfig()
    training: TrainingConfig = TrainingConfig()
    artifact: ArtifactConfig = ArtifactConfig()

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        Load YAML config + .env
        - defaults to <project_root>/purchase_predict/config/base.yml
        - does not depend on the current working directory
        - PURCHASE_PREDICT_DATA_PATH overrides data.path
        """
        root = project_root()

        # 1) .env at the project root
        load_dotenv(os.path.join(root, ".env"))

        # 2) resolve config file
        if path is None:
            path = os.path.join(root, "purchase_predict/config/base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) read YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) env overrides
        data_path = os.getenv(DATA_PATH_ENV)
        if data_path:
            raw.setdefault("data", {})["path"] = data_path

        return cls(**raw)
