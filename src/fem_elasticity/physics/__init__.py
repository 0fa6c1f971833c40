from .elasticity import ElasticitySystem

__all__ = ["ElasticitySystem"]
