"""Built-in auth plugins.

Each plugin lives in its own sub-package (``spie.plugins.<name>``) with the
implementation in ``plugin.py``:

* :mod:`spie.plugins.basic` -- ``Authorization: Basic``.
* :mod:`spie.plugins.bearer` -- ``Authorization: Bearer``.
"""
