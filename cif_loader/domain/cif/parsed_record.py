from __future__ import annotations

from dataclasses import dataclass, field

from cif_loader.domain.cif.record_types import RecordType


@dataclass
class ParsedRecord:
    """
    Назначение:
        Запись CIF, нарезанная на именованные поля.
    Инварианты/гарантии:
        - Пустой (только пробелы) срез хранится как None, а не как "".
        - record_identity всегда соответствует record_type.
    """

    record_type: RecordType
    values: dict[str, str | None] = field(default_factory=dict)
    line_no: int | None = None

    @property
    def record_identity(self) -> str:
        return self.record_type.value

    def get(self, name: str) -> str | None:
        return self.values.get(name)

    def __getitem__(self, name: str) -> str | None:
        if name == "record_identity":
            return self.record_identity
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name == "record_identity" or name in self.values

    def to_dict(self) -> dict[str, str | None]:
        return {"record_identity": self.record_identity, **self.values}
