from __future__ import annotations

from cif_loader.datasets.associations.table_spec import associations_table_spec
from cif_loader.datasets.tiplocs.table_spec import tiplocs_table_spec
from cif_loader.infra.store.table_spec import TableSpec


def list_table_specs() -> list[TableSpec]:
    """
    Назначение:
        Вернуть TableSpec для всех наборов данных хранилища.
    """
    return [tiplocs_table_spec, associations_table_spec]


def get_table_spec(dataset: str) -> TableSpec:
    for spec in list_table_specs():
        if spec.dataset == dataset:
            return spec
    raise ValueError(f"Unsupported dataset: {dataset}")
