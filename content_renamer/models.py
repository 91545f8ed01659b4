from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class NamingRule:
    name: str = ""
    keywords: List[str] = field(default_factory=list)
    service_name: str = ""
    payment_method: str = ""
    date_override: Optional[str] = None

    def is_valid(self) -> bool:
        return bool(self.name)


@dataclass
class NamingRules:
    rules: List[NamingRule] = field(default_factory=list)
    default_service_name: str = ""
    default_payment_method: str = ""


@dataclass
class FileOperation:
    source: str
    destination: str
    status: str
    rule: Optional[str] = None
    date: Optional[str] = None
    notes: List[str] = field(default_factory=list)
