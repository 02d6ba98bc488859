"""DexMaker - automated market maker for graphene-based decentralized exchanges."""

__version__ = "0.1.0"
