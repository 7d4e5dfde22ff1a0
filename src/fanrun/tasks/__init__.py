"""Built-in task bodies, discovered by :func:`fanrun.bootstrap.init_fanrun`."""
