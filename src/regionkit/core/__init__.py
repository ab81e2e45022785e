"""Qt-free building blocks: geometry, mask rasterisation, history and compositing."""
