from .elements import ElementFactory, ElementFamily, ReferenceElement
from .LINE import EDGE2, POINT1
from .QUAD import QUAD4, TRI3
from .SOLID import HEXA8, WEDGE6

__all__ = [
    "ElementFactory",
    "ElementFamily",
    "ReferenceElement",
    "POINT1",
    "EDGE2",
    "TRI3",
    "QUAD4",
    "HEXA8",
    "WEDGE6",
]
