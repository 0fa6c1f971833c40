"""
fem-elasticity: element-level assembly for nonlinear-framework elasticity.
"""

__version__ = "0.1.0"
