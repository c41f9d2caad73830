# -*- coding: utf-8 -*-
# core/exceptions.py
class PrintLayoutError(Exception):
    """Base application exception"""
    pass

class ImageDecodeError(PrintLayoutError):
    """Slot image bytes could not be decoded"""
    pass

class ProfileLoadError(PrintLayoutError):
    """Color profile could not be loaded"""
    pass

class ProfileTransformError(PrintLayoutError):
    """Color profile transform failed for an image"""
    pass

class ValidationError(PrintLayoutError):
    """Editor data has an unknown or invalid shape"""
    pass

class ExportError(PrintLayoutError):
    """Export could not produce its output bytes"""
    pass
