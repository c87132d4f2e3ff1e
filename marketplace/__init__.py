"""Registry convergence engine for curated operator package catalogues."""
