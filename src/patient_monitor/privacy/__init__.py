from .pixelate import PIXEL_SIZE, FaceRegion, face_region, pixelate_face, pixelate_region

__all__ = [
    "PIXEL_SIZE",
    "FaceRegion",
    "face_region",
    "pixelate_face",
    "pixelate_region",
]
