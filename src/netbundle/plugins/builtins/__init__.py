"""Built-in reporters shipped with netbundle."""
