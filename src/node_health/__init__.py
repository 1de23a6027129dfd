"""
Node health verifier.

Decides whether a pair of Ethereum nodes, an execution layer client and a
consensus layer client, are synchronized and still following the chain,
rather than merely answering requests.
"""

__version__ = "0.1.0"
