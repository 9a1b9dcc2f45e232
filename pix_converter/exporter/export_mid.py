"""Write a loaded Model as mid-format text files.

Each artifact lands at ``export_root + model.file_path + ext``; missing
directories are created. A failing artifact is logged and skipped, the
remaining ones are still written.
"""

import logging
import os

from .pim_export import pim_text
from .pis_export import pis_text
from .pit_export import pit_text

_log = logging.getLogger("pix_export")

PIM_EXT = ".pim"
PIT_EXT = ".pit"
PIS_EXT = ".pis"


def artifact_path(model, export_root, ext):
    return export_root + model.file_path + ext


def _write_artifact(model, export_root, ext, text):
    path = artifact_path(model, export_root, ext)
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
    except OSError as e:
        _log.error("Cannot write \"%s\": %s", path, e.strerror or e)
        return False
    _log.debug("Wrote %s (%d bytes)", path, len(text))
    return True


def save_to_pim(model, export_root):
    return _write_artifact(model, export_root, PIM_EXT, pim_text(model))


def save_to_pit(model, export_root):
    return _write_artifact(model, export_root, PIT_EXT, pit_text(model))


def save_to_pis(model, export_root):
    text = pis_text(model)
    if text is None:
        return False
    return _write_artifact(model, export_root, PIS_EXT, text)


def _yes_no(flag):
    return "yes" if flag else "no"


def save_to_mid_format(model, export_root, convert_textures=False):
    """Write .pim, .pit and .pis (plus .pic/.pip when the model has them).

    Returns True when the geometry artifact was written.
    """
    pim = save_to_pim(model, export_root)
    pit = save_to_pit(model, export_root)
    pis = save_to_pis(model, export_root)

    pic = False
    if model.collision is not None:
        pic = model.collision.save_to_pic(export_root)
    pip = False
    if model.prefab is not None:
        pip = model.prefab.save_to_pip(export_root)

    if convert_textures:
        converted = model.convert_textures(export_root)
        _log.debug("%s: %d textures converted", model.file_name, converted)

    _log.info("%s: pim:%s pit:%s pis:%s pic:%s pip:%s. vertices: %i materials: %i",
              model.file_name, _yes_no(pim), _yes_no(pit), _yes_no(pis),
              _yes_no(pic), _yes_no(pip), model.vert_count, model.material_count)
    return pim
