"""Redis access layer: client construction, fault groupings, retries and the product store."""
