"""
Modules - Feature modules of the media API.

- media/ - Image cache and audio streaming
"""
