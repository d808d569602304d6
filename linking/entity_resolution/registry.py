"""
Canonical entity registries known to the resolver.

Each member names the bucket key the extraction step emits and is bound to
exactly one registry model, so every lookup goes through a mapped column.
Iteration order is the declaration order and fixes the order buckets are
processed in.
"""

from enum import Enum as PyEnum

from linking.models import (
    Fund,
    GeneralPartner,
    LimitedPartner,
    PortfolioCompany,
    RegistryEntity,
    ServiceProvider,
)


class EntityKind(PyEnum):
    GENERAL_PARTNERS = "general_partners"
    FUNDS = "funds"
    PORTFOLIO_COMPANIES = "portfolio_companies"
    LIMITED_PARTNERS = "limited_partners"
    SERVICE_PROVIDERS = "service_providers"

    @property
    def bucket(self) -> str:
        """Key of this registry's mention list in output_json["entities"]."""
        return self.value

    @property
    def model(self) -> type[RegistryEntity]:
        return _REGISTRY_MODELS[self]

    @property
    def tag(self) -> str:
        """Short type tag stored on entity links (e.g. "gp")."""
        return self.model.entity_tag

    @classmethod
    def from_tag(cls, tag: str) -> "EntityKind":
        for kind in cls:
            if kind.tag == tag:
                return kind
        raise ValueError(f"Unknown entity tag: {tag}")


_REGISTRY_MODELS: dict[EntityKind, type[RegistryEntity]] = {
    EntityKind.GENERAL_PARTNERS: GeneralPartner,
    EntityKind.FUNDS: Fund,
    EntityKind.PORTFOLIO_COMPANIES: PortfolioCompany,
    EntityKind.LIMITED_PARTNERS: LimitedPartner,
    EntityKind.SERVICE_PROVIDERS: ServiceProvider,
}
