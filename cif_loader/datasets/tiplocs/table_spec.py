from __future__ import annotations

from cif_loader.domain.models import Dataset
from cif_loader.infra.store.table_spec import ColumnSpec, TableSpec


tiplocs_table_spec = TableSpec(
    dataset=Dataset.TIPLOCS.value,
    table="tiplocs",
    columns=(
        ColumnSpec(name="tiploc_code", type="string", nullable=False),
        ColumnSpec(name="capitals_identification", type="string"),
        ColumnSpec(name="nalco", type="string"),
        ColumnSpec(name="nlc_check_character", type="string"),
        ColumnSpec(name="tps_description", type="string"),
        ColumnSpec(name="stanox", type="string"),
        ColumnSpec(name="crs_code", type="string"),
        ColumnSpec(name="description", type="string"),
    ),
    lookup_indexes=(("tiploc_code",),),
)
