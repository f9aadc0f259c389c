from fastlcc.utils.slicer import Slicer

__all__ = ["Slicer"]
