"""Namespace for storage back ends; this release includes none."""