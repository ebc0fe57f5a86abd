"""Statistical analyses on synthetic daily feeds."""
