#!filepath: purchase_predict/config/data_config.py
from typing import Optional

from pydantic import BaseModel


class SampleConfig(BaseModel):
    """
    Feature values of the demonstration record scored after training.
    Category ids are arbitrary finite floats; no magnitude is assumed.
    """
    product_id: float = 44600062.0
    category_id: float = 2103807459595387724.0
    price: float = 35.79
    user_id: float = 541312140.0


class DataConfig(BaseModel):
    path: str = "data/2019-Oct.csv"
    separator: str = ","
    max_rows: Optional[int] = None
    sample: SampleConfig = SampleConfig()
