"""
Post-emit transformers rewriting module specifiers, and the registration
API the host compiler consumes.
"""

from tsc_multi.transformers.base import (
  CustomTransformers,
  TransformationContext,
  Transformer,
  apply_transformers,
  merge_custom_transformers,
)
from tsc_multi.transformers.rewrite_dts_import import RewriteDtsImportTransformer
from tsc_multi.transformers.rewrite_import import RewriteImportTransformer
from tsc_multi.transformers.specifier import SpecifierUpdater, find_module_specifier, is_relative_path

__all__ = [
  "CustomTransformers",
  "RewriteDtsImportTransformer",
  "RewriteImportTransformer",
  "SpecifierUpdater",
  "TransformationContext",
  "Transformer",
  "apply_transformers",
  "find_module_specifier",
  "is_relative_path",
  "merge_custom_transformers",
]
