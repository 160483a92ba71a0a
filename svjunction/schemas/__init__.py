import os
from typing import Dict

from snakemake.utils import validate as snakemake_validate

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), 'config.json')


def get_by_prefix(config, prefix):
    return {k.replace(prefix, ''): v for k, v in config.items() if k.startswith(prefix)}


def validate_config(config: Dict) -> Dict:
    """
    check the config against the schema and fill in the default values of any missing settings
    """
    snakemake_validate(config, SCHEMA_FILE, set_default=True)
    return config
