"""pix_converter: prism model (.pmg/.pmd) to mid-format (.pim/.pit/.pis) converter.

Decodes the binary geometry and descriptor files of a prism model into a
Model and writes it back out as the text mid-format used by the modding
tools.

    from pix_converter.utils.filesystem import SysFileSystem
    from pix_converter.model.model import Model
    from pix_converter.exporter.export_mid import save_to_mid_format

    model = Model(SysFileSystem("base"))
    if model.load("/vehicle/truck/cab"):
        save_to_mid_format(model, "out")
"""

__version__ = "1.0.0"

# Written into the "Source" field of every mid-format header
STRING_VERSION = f"pix_converter {__version__}"
