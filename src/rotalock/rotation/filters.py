"""Selection filter predicates

The scheduler only calls ``predicate(obj) -> bool`` (True = ignore this
selection). This module builds such predicates from FilterSettings and a
host ``describe(obj) -> ObjectInfo | None`` function.

Rule order:
- folder
- default asset: native plugin extension, then asmdef extension, then any
- asmdef (kind or extension)
- text asset
- lighting settings
- shader / compute shader
- font
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from .. import config

Predicate = Callable[[Any], bool]

KIND_DEFAULT_ASSET = "DefaultAsset"
KIND_ASM_DEF = "AssemblyDefinitionAsset"
KIND_TEXT_ASSET = "TextAsset"
KIND_LIGHTING_SETTINGS = "LightingSettings"
KIND_SHADER = "Shader"
KIND_COMPUTE_SHADER = "ComputeShader"
KIND_FONT = "Font"


@dataclass(frozen=True)
class ObjectInfo:
    """What the filter needs to know about a selection

    Attributes:
        kind: host type name, e.g. "TextAsset"
        path: asset path, empty for scene objects
        is_folder: whether the path is a folder
    """
    kind: str
    path: str = ""
    is_folder: bool = False


@dataclass
class FilterSettings:
    """Which selection categories are ignored"""
    block_folder: bool = config.BLOCK_FOLDER_SELECTION
    block_default_asset: bool = config.BLOCK_DEFAULT_ASSET
    block_asm_def: bool = config.BLOCK_ASM_DEF
    block_native_plugin: bool = config.BLOCK_NATIVE_PLUGIN
    block_text_asset: bool = config.BLOCK_TEXT_ASSET
    block_lighting_settings: bool = config.BLOCK_LIGHTING_SETTINGS
    block_shader: bool = config.BLOCK_SHADER
    block_font: bool = config.BLOCK_FONT


def has_extension(path: str, extensions: Iterable[str]) -> bool:
    """Case-insensitive extension check

    Args:
        path: asset path (may be empty)
        extensions: extensions including the dot

    Returns:
        Whether ``path`` ends with one of them
    """
    if not path:
        return False
    return PurePosixPath(path).suffix.lower() in set(extensions)


def should_block(info: ObjectInfo | None, settings: FilterSettings) -> bool:
    """Decide whether a described selection is ignored

    Args:
        info: description, None when the host cannot describe the object
        settings: filter settings

    Returns:
        True to suppress the dispatch
    """
    if info is None or settings is None:
        return False

    if settings.block_folder and info.path and info.is_folder:
        return True

    # native plugins are checked before the generic default-asset rule so
    # they can be controlled on their own
    if info.kind == KIND_DEFAULT_ASSET:
        if settings.block_native_plugin and has_extension(info.path, config.NATIVE_PLUGIN_EXTENSIONS):
            return True
        if settings.block_asm_def and has_extension(info.path, config.ASM_DEF_EXTENSIONS):
            return True
        if settings.block_default_asset:
            return True

    if settings.block_asm_def:
        if info.kind == KIND_ASM_DEF:
            return True
        if has_extension(info.path, config.ASM_DEF_EXTENSIONS):
            return True

    if settings.block_text_asset and info.kind == KIND_TEXT_ASSET:
        return True

    if settings.block_lighting_settings and info.kind == KIND_LIGHTING_SETTINGS:
        return True

    if settings.block_shader and info.kind in (KIND_SHADER, KIND_COMPUTE_SHADER):
        return True

    if settings.block_font and info.kind == KIND_FONT:
        return True

    return False


def make_selection_filter(
    settings: FilterSettings,
    describe: Callable[[Any], ObjectInfo | None],
) -> Predicate:
    """Build a scheduler predicate

    Args:
        settings: filter settings, read on every call so later edits apply
        describe: host function describing a selection object

    Returns:
        ``(obj) -> bool`` predicate
    """
    def predicate(obj: Any) -> bool:
        if obj is None:
            return False
        return should_block(describe(obj), settings)

    return predicate


def block_kinds(*kinds: str) -> Predicate:
    """Predicate blocking objects whose ``kind`` attribute is in ``kinds``"""
    blocked = frozenset(kinds)

    def predicate(obj: Any) -> bool:
        return getattr(obj, "kind", None) in blocked

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    """Combine predicates; blocks when any of them blocks"""
    def predicate(obj: Any) -> bool:
        return any(p(obj) for p in predicates)

    return predicate
