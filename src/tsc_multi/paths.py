"""
Output Path Policy.

Pure functions mapping an emitted artifact path to the path it should be
written to for a given target. The policy holds no state besides the two
configured extensions and never touches the file system.

Example
-------

.. code-block:: python

    policy = PathPolicy(extname=".mjs", dts_extname=".d.mts")
    policy.rewrite("dist/index.js")  # dist/index.mjs
    policy.rewrite("dist/index.js.map")  # dist/index.mjs.map
    policy.rewrite("dist/index.d.ts", ignore_declarations=True)  # dist/index.d.ts
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from tsc_multi.enums import OutputRole

JS_EXT = ".js"
MAP_EXT = ".map"
JS_MAP_EXT = f"{JS_EXT}{MAP_EXT}"
DTS_EXT = ".d.ts"
DTS_MAP_EXT = f"{DTS_EXT}{MAP_EXT}"
JSON_EXT = ".json"
CJS_EXT = ".cjs"

# Longer suffixes first so maps are never classified as their source artifact.
_ROLE_SUFFIXES: Tuple[Tuple[str, OutputRole], ...] = (
  (DTS_MAP_EXT, OutputRole.DECLARATION_MAP),
  (DTS_EXT, OutputRole.DECLARATION),
  (JS_MAP_EXT, OutputRole.SCRIPT_MAP),
  (JS_EXT, OutputRole.SCRIPT),
)


def trim_suffix(text: str, suffix: str) -> str:
  """
  Removes ``suffix`` from the end of ``text`` if present.

  Args:
      text (str): Input string.
      suffix (str): Suffix to strip.

  Returns:
      str: ``text`` without the trailing suffix.
  """
  if suffix and text.endswith(suffix):
    return text[: -len(suffix)]
  return text


def classify(path: str) -> Optional[OutputRole]:
  """
  Determines the output role of a path from its suffix.

  Args:
      path (str): Output path.

  Returns:
      Optional[OutputRole]: The role, or None if the path matches no role.
  """
  for suffix, role in _ROLE_SUFFIXES:
    if path.endswith(suffix):
      return role
  return None


def role_suffix(role: OutputRole) -> str:
  """Returns the original suffix an artifact of ``role`` is emitted with."""
  for suffix, candidate in _ROLE_SUFFIXES:
    if candidate is role:
      return suffix
  raise ValueError(f"Unknown output role: {role}")


def declaration_specifier_extension(dts_extname: Optional[str], extname: Optional[str]) -> str:
  """
  Resolves the runtime extension that specifiers inside declaration files
  must carry.

  A declaration file references its siblings by their runtime name; the host
  compiler maps ``./foo.mjs`` to ``./foo.d.mts`` on its own. ``.d.mts`` maps
  to ``.mjs``, ``.d.cts`` to ``.cjs`` and ``.d.ts`` to ``.js``. Any other
  declaration extension falls back to the script extension.

  Args:
      dts_extname (Optional[str]): Configured declaration extension.
      extname (Optional[str]): Configured script extension.

  Returns:
      str: Extension to append to declaration specifiers.
  """
  if dts_extname and dts_extname.startswith(".d.") and dts_extname.endswith("ts"):
    flavour = dts_extname[len(".d.") : -len("ts")]
    if flavour in ("", "m", "c"):
      return f".{flavour}js"
  return extname or JS_EXT


@dataclass(frozen=True)
class PathPolicy:
  """
  Extension configuration of a single target.

  An unset extension means artifacts of that kind keep their original name.

  Attributes:
      extname (Optional[str]): Replacement for ``.js`` (maps get ``.map`` appended).
      dts_extname (Optional[str]): Replacement for ``.d.ts``.
  """

  extname: Optional[str] = None
  dts_extname: Optional[str] = None

  def extension_for(self, role: OutputRole) -> Optional[str]:
    """
    Returns the configured replacement suffix for ``role``, or None if unset.
    """
    if role.is_declaration:
      ext = self.dts_extname
    else:
      ext = self.extname

    if ext is None:
      return None
    return f"{ext}{MAP_EXT}" if role.is_map else ext

  def rewrite(self, path: str, ignore_declarations: bool = False) -> str:
    """
    Rewrites an output path based on its role.

    Declaration paths are left alone when ``ignore_declarations`` is set so
    that reads of the host compiler's bundled library declarations never
    miss.

    Args:
        path (str): Original output path.
        ignore_declarations (bool): Skip declaration and declaration map paths.

    Returns:
        str: The rewritten path, or ``path`` itself when no rule applies.
    """
    role = classify(path)
    if role is None:
      return path
    if ignore_declarations and role.is_declaration:
      return path

    new_suffix = self.extension_for(role)
    if new_suffix is None or path.endswith(new_suffix):
      return path

    return trim_suffix(path, role_suffix(role)) + new_suffix
