"""
Package version.

setuptools-scm rewrites this file from the repository's tags when the
package is built or installed (``[tool.setuptools_scm]`` in pyproject.toml).
The values below are only seen when running from an unbuilt source tree.
"""

from typing import Tuple, Union

__version__ = "0.0.0+unknown"
__version_tuple__: Tuple[Union[int, str], ...] = (0, 0, 0, "unknown")
