"""
Editor facing export services
"""
