#!filepath: purchase_predict/config/artifact_config.py
from pydantic import BaseModel


class ArtifactConfig(BaseModel):
    dir: str = "artifacts"
