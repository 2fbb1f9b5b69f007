"""Built-in pipeline stages."""

from fastapi_esm_devserver.stages.assets import AssetInliner
from fastapi_esm_devserver.stages.components import VirtualModuleSplitter
from fastapi_esm_devserver.stages.imports import ImportRewriter, rewrite_imports
from fastapi_esm_devserver.stages.modules import ModulePathRewrite, PackageResolver
from fastapi_esm_devserver.stages.static import StaticResponder
from fastapi_esm_devserver.stages.styles import StyleWrapper

__all__ = [
    "AssetInliner",
    "ImportRewriter",
    "ModulePathRewrite",
    "PackageResolver",
    "StaticResponder",
    "StyleWrapper",
    "VirtualModuleSplitter",
    "rewrite_imports",
]
