"""
Tiles: geobuf PBF tiles and the boundary/tile loader

- Encodes `{level}/{z}/{x}/{y}.pbf` tiles from boundary files
- Loads tiles and boundary files on demand with a byte-size LRU cache
- Viewport level-of-detail helpers
- Serves boundaries/tiles over HTTP: /boundaries, /tiles, /stats, /health
"""
