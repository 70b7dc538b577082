"""Built-in YAML themes shipped with markwell."""
