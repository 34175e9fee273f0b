PRICE_MODEL_REGISTRY = {}

def register_price_model(name: str):
    def decorator(cls):
        cls.name = name
        PRICE_MODEL_REGISTRY[name] = cls
        return cls
    return decorator

def build_price_model(name: str, **kwargs):
    if name not in PRICE_MODEL_REGISTRY:
        raise KeyError(f"unknown price model: {name}")
    return PRICE_MODEL_REGISTRY[name](**kwargs)

from .price import *
