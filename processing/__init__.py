"""
Image decoding, compositing and color conversion
"""
