"""
graph/
-----
Core data layer.  Public API:

    from graph import Graph, Vertex, Edge
    from graph import GraphProvider
"""

from graph.vertex   import Vertex
from graph.edge     import Edge
from graph.graph    import Graph
from graph.provider import GraphProvider

__all__ = [
    "Vertex",
    "Edge",
    "Graph",
    "GraphProvider",
]
