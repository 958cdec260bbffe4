"""Built-in CLI sub-commands for aurkit.

* :mod:`~aurkit.commands.packages` -- ``search``, ``info``, ``comments``
  and ``pkgbuild``, registered directly on the root app.
* :mod:`~aurkit.commands.cache` -- the ``cache`` group (``clear``,
  ``cleanup``, ``stats``).
"""
