"""Persist the error map and generate the ErrorDev/ErrorProd helper modules."""
from __future__ import annotations

from pathlib import Path

from errmap.extractor.filesystem import FileSystem
from errmap.internals.errors import raise_error
from errmap.store.error_map import WorkingIndex, serialize_error_map

DEV_HELPER_NAME = "ErrorDev.js"
PROD_HELPER_NAME = "ErrorProd.js"

# Both helper texts are consumed by other build tooling; keep them byte-exact,
# trailing whitespace included.
ERROR_DEV_TEMPLATE = (
    "\n"
    "function ErrorDev(message) {\n"
    "  const error = new Error(message);\n"
    "  error.name = 'Invariant Violation';\n"
    "  return error;\n"
    "}\n"
    "\n"
    "export default ErrorDev;      \n"
    "      "
)

ERROR_PROD_TEMPLATE = (
    "// Do not require this module directly! Use a normal error constructor with\n"
    "// template literal strings. The messages will be converted to ErrorProd during\n"
    "// build, and in production they will be minified.\n"
    "\n"
    "function ErrorProd(code) {\n"
    "  let url = '%(url)s' + code;\n"
    "  for (let i = 1; i < arguments.length; i++) {\n"
    "    url += '&args[]=' + encodeURIComponent(arguments[i]);\n"
    "  }\n"
    "  return new Error(\n"
    "    `Minified %(name)s error #${code}; visit ${url} for the full message or ` +\n"
    "      'use the non-minified dev environment for full errors and additional ' +\n"
    "      'helpful warnings. '\n"
    "  );\n"
    "}\n"
    "\n"
    "export default ErrorProd;\n"
)


def render_error_dev() -> str:
    return ERROR_DEV_TEMPLATE


def render_error_prod(lookup_url_prefix: str, pretty_name: str) -> str:
    """Production helper with the url prefix and display name embedded verbatim."""
    return ERROR_PROD_TEMPLATE % {"url": lookup_url_prefix, "name": pretty_name}


class Emitter:
    """Writes the outputs of one run.

    The map file is overwritten in full on every flush, and the helpers are
    regenerated even when they already exist.
    """

    def __init__(self, fs: FileSystem, error_map_path: Path, errors_dir: Path,
                 lookup_url_prefix: str, pretty_name: str) -> None:
        self.fs = fs
        self.error_map_path = Path(error_map_path)
        self.errors_dir = Path(errors_dir)
        self.lookup_url_prefix = lookup_url_prefix
        self.pretty_name = pretty_name

    def flush(self, index: WorkingIndex) -> list[Path]:
        """Write the map and both helpers; return the written paths in order."""
        written: list[Path] = []
        self._write(self.error_map_path, serialize_error_map(index), written)

        try:
            self.fs.ensure_dir(self.errors_dir)
        except OSError as e:
            raise_error("EI0002", path=str(self.errors_dir), reason=e.strerror or str(e))

        self._write(self.errors_dir / DEV_HELPER_NAME, render_error_dev(), written)
        self._write(self.errors_dir / PROD_HELPER_NAME,
                    render_error_prod(self.lookup_url_prefix, self.pretty_name), written)
        return written

    def _write(self, path: Path, text: str, written: list[Path]) -> None:
        try:
            self.fs.write_text(path, text)
        except OSError as e:
            raise_error("EI0001", path=str(path), reason=e.strerror or str(e))
        written.append(path)
