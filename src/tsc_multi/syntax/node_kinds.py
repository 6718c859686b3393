"""
Node-Kind Adapter.

The declaration emitter can inline a module reference inside a type, e.g.::

    export declare const Schema: import("./schema").TObject<{
      child: import("../..").TRecord<...>;
    }>;

Nested in generic arguments or object types these references push the
grammar into error recovery: the ``import`` and ``(`` tokens end up in an
``ERROR`` node and the literal becomes a ``string`` hanging off a
``member_expression`` instead of a call argument. They are recognized
positionally: the literal is the current node and the two leaf tokens just
before it in source order have a known pair of kinds. Leaf tokens are used
because the recovery nesting around them varies between grammar releases.

Every grammar-specific kind name used for that detection lives in
:data:`EMBEDDED_MODULE_REF_SHAPES`, keyed by the grammar ABI version. A
grammar upgrade means adding one row here plus a regression fixture.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

WINDOW_SIZE = 3


@dataclass(frozen=True)
class EmbeddedRefShape:
  """
  Positional signature of an embedded module reference.

  Attributes:
      preceding (Tuple[str, str]): Kinds of the two leaf tokens before the
          literal, most recent first.
      literal (str): Kind of the literal node itself.
  """

  preceding: Tuple[str, str]
  literal: str = "string"


_IMPORT_CALL_TOKENS = EmbeddedRefShape(preceding=("(", "import"))

EMBEDDED_MODULE_REF_SHAPES: Dict[int, Tuple[EmbeddedRefShape, ...]] = {
  14: (_IMPORT_CALL_TOKENS,),
  15: (_IMPORT_CALL_TOKENS,),
}


def shapes_for(abi_version: Optional[int]) -> Tuple[EmbeddedRefShape, ...]:
  """
  Looks up the embedded-reference shapes for a grammar ABI version.

  Unknown versions use the newest known row and log a warning so the table
  gets updated.

  Args:
      abi_version (Optional[int]): Grammar ABI version.

  Returns:
      Tuple[EmbeddedRefShape, ...]: Shapes to match.
  """
  shapes = EMBEDDED_MODULE_REF_SHAPES.get(abi_version) if abi_version is not None else None
  if shapes is not None:
    return shapes

  latest = max(EMBEDDED_MODULE_REF_SHAPES)
  logger.warning(
    "No embedded module reference shapes for grammar ABI %s; using ABI %s",
    abi_version,
    latest,
  )
  return EMBEDDED_MODULE_REF_SHAPES[latest]


def looks_like_embedded_module_ref(
  recent_kinds: Sequence[str],
  shapes: Sequence[EmbeddedRefShape],
) -> bool:
  """
  Decides whether the current node is a module reference nested in a type.

  Args:
      recent_kinds (Sequence[str]): Most recently visited node kinds, current
          node first.
      shapes (Sequence[EmbeddedRefShape]): Signatures to match.

  Returns:
      bool: True if the window is full and matches one of ``shapes``.
  """
  if len(recent_kinds) < WINDOW_SIZE:
    return False
  current, previous, before_previous = recent_kinds[0], recent_kinds[1], recent_kinds[2]
  return any(current == shape.literal and (previous, before_previous) == shape.preceding for shape in shapes)


class KindWindow:
  """
  Bounded record of the last visited token kinds, newest first.
  """

  def __init__(self, size: int = WINDOW_SIZE):
    self._kinds: Deque[str] = deque(maxlen=size)

  def push(self, kind: str) -> None:
    self._kinds.appendleft(kind)

  @property
  def kinds(self) -> Tuple[str, ...]:
    return tuple(self._kinds)
