from .model_selection import cv_score_tgl

__all__ = ["cv_score_tgl"]
