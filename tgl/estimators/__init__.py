from .tgl import TGL

__all__ = ["TGL"]
