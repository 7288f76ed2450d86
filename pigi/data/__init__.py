"""
Loading of the package registry.

This package is responsible for:
* Reading the registry document (JSON or YAML) from disk.
* Validating every entry into a Repository.
* Building the immutable Registry shared by all requests.
"""
