"""
Transformer Registration API.

Mirrors the hook points the host compiler offers after code generation:
``after`` (on emitted scripts) and ``after_declarations`` (on emitted
declaration files). A transformer takes a tree root and a
:class:`TransformationContext` and returns a source file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Union

from tsc_multi.errors import UnsupportedTreeError
from tsc_multi.syntax.tree import Bundle, SourceFile


@dataclass
class TransformationContext:
  """
  Per-emit context handed to transformers.

  Attributes:
      compiler_options (Dict[str, Any]): Resolved host compiler options.
  """

  compiler_options: Dict[str, Any] = field(default_factory=dict)

  def get_compiler_options(self) -> Dict[str, Any]:
    return self.compiler_options


class Transformer(ABC):
  """
  A post-emit syntax tree transform.
  """

  @abstractmethod
  def transform(self, node: Union[SourceFile, Bundle], context: TransformationContext) -> SourceFile:
    """
    Args:
        node: Tree root produced by the host compiler.
        context: Emit context.

    Returns:
        SourceFile: Structurally equivalent file with rewrites applied.

    Raises:
        UnsupportedTreeError: If ``node`` is a root kind the transformer rejects.
    """

  def __call__(self, node: Union[SourceFile, Bundle], context: TransformationContext) -> SourceFile:
    return self.transform(node, context)


def require_source_file(node: Union[SourceFile, Bundle]) -> SourceFile:
  """
  Rejects bundle roots.

  Args:
      node: Tree root.

  Returns:
      SourceFile: ``node`` itself.

  Raises:
      UnsupportedTreeError: If ``node`` is a :class:`Bundle`.
  """
  if isinstance(node, Bundle):
    raise UnsupportedTreeError("Doesn't work on bundles.", file_name=node.file_name)
  return node


@dataclass
class CustomTransformers:
  """
  Transformers registered per hook point.
  """

  after: List[Transformer] = field(default_factory=list)
  after_declarations: List[Transformer] = field(default_factory=list)


def merge_custom_transformers(*items: CustomTransformers) -> CustomTransformers:
  """
  Concatenates the hook lists of several registrations, preserving order.

  Args:
      *items: Registrations to merge.

  Returns:
      CustomTransformers: Combined registration.
  """
  merged = CustomTransformers()
  for item in items:
    merged.after.extend(item.after)
    merged.after_declarations.extend(item.after_declarations)
  return merged


def apply_transformers(
  transformers: Sequence[Transformer],
  node: Union[SourceFile, Bundle],
  context: TransformationContext,
) -> Union[SourceFile, Bundle]:
  """
  Runs ``transformers`` in order, feeding each the previous result.

  Args:
      transformers: Transformers to run.
      node: Initial tree root.
      context: Emit context.

  Returns:
      The final root; ``node`` itself when ``transformers`` is empty.
  """
  current: Union[SourceFile, Bundle] = node
  for transformer in transformers:
    current = transformer(current, context)
  return current
