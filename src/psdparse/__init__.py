"""
psdparse: structural decoder for Adobe Photoshop PSD files.

The decoder walks a PSD file section by section, reports corruption as
warnings instead of failing, and recovers the raster layers and the merged
composite as separate images.

Basic usage::

    from psdparse import PSDFile

    psdfile = PSDFile.open('example.psd')
    for image in psdfile.images():
        print(image.name, image.model.name)

    psdfile.save('example_png')

Architecture:

- :py:mod:`psdparse.psd`: Low-level binary structure parsing
- :py:mod:`psdparse.compression`: PackBits RLE codec
- :py:mod:`psdparse.api`: Image assembly, PNG output and batch processing
"""

from psdparse.api.psd_image import Outcome, ParseResult, PSDFile, parse_file
from psdparse.version import __version__

__all__ = ["Outcome", "ParseResult", "PSDFile", "parse_file", "__version__"]
