from dataclasses import dataclass, field

from transaction_advisor.domain.text import normalize_text
from transaction_advisor.logger import get_logger
from transaction_advisor.models import Category, ClassificationRule

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuleTemplate:
    id: str
    keywords: tuple[str, ...]
    confidence: float


DEFAULT_TEMPLATES: tuple[RuleTemplate, ...] = (
    RuleTemplate(
        id="food_general",
        keywords=(
            "restaurante", "lanchonete", "padaria", "supermercado", "mercado", "açougue",
            "hortifruti", "pizza", "hamburguer", "comida", "almoço", "jantar", "café",
            "bar", "mcdonald", "burger king", "subway", "ifood", "uber eats", "rappi",
        ),
        confidence=0.9,
    ),
    RuleTemplate(
        id="transport_general",
        keywords=(
            "uber", "taxi", "posto", "combustivel", "gasolina", "etanol", "diesel",
            "oficina", "estacionamento", "pedágio", "onibus", "metro", "vlt", "99",
            "ipva", "seguro auto", "revisão",
        ),
        confidence=0.9,
    ),
    RuleTemplate(
        id="housing_general",
        keywords=(
            "aluguel", "condominio", "iptu", "luz", "agua", "gas", "internet", "telefone",
            "limpeza", "construção", "reforma", "móveis", "decoração", "eletrodomésticos",
        ),
        confidence=0.9,
    ),
    RuleTemplate(
        id="health_general",
        keywords=(
            "farmacia", "remedio", "medico", "dentista", "hospital", "clinica", "exame",
            "plano saude", "convenio", "psicólogo", "fisioterapia", "laboratorio",
        ),
        confidence=0.9,
    ),
    RuleTemplate(
        id="education_general",
        keywords=(
            "escola", "universidade", "curso", "livro", "material escolar", "mensalidade",
            "professor", "aula", "faculdade", "pos graduação",
        ),
        confidence=0.9,
    ),
    RuleTemplate(
        id="entertainment_general",
        keywords=(
            "cinema", "teatro", "show", "netflix", "spotify", "amazon prime", "youtube",
            "jogos", "viagem", "hotel", "turismo", "festa", "presente",
        ),
        confidence=0.8,
    ),
    RuleTemplate(
        id="shopping_general",
        keywords=(
            "shopping", "loja", "roupa", "sapato", "acessorio", "magazine luiza",
            "americanas", "casas bahia", "amazon", "mercado livre", "aliexpress", "shein",
        ),
        confidence=0.8,
    ),
    RuleTemplate(
        id="salary_income",
        keywords=(
            "salario", "ordenado", "vencimento", "pagamento", "empresa", "trabalho",
            "pix salario", "folha pagamento",
        ),
        confidence=0.95,
    ),
    RuleTemplate(
        id="freelance_income",
        keywords=(
            "freelance", "freela", "consultoria", "projeto", "serviço", "trabalho extra",
            "bico",
        ),
        confidence=0.85,
    ),
)


DEFAULT_NAME_FRAGMENTS: dict[str, tuple[str, ...]] = {
    "alimentacao": ("restaurante", "comida", "supermercado"),
    "transporte": ("uber", "taxi", "combustivel"),
    "moradia": ("aluguel", "luz", "agua"),
    "saude": ("farmacia", "medico", "hospital"),
    "educacao": ("escola", "curso", "livro"),
    "lazer": ("cinema", "netflix", "viagem"),
    "compras": ("shopping", "loja", "roupa"),
    "salario": ("salario", "ordenado", "pagamento"),
    "freelance": ("freelance", "consultoria", "projeto"),
}

DEFAULT_TEMPLATE_FRAGMENTS: dict[str, tuple[str, ...]] = {
    "food_general": ("alimentacao", "comida"),
    "transport_general": ("transporte",),
    "housing_general": ("moradia", "casa"),
    "health_general": ("saude",),
    "education_general": ("educacao",),
    "entertainment_general": ("lazer", "entretenimento"),
    "shopping_general": ("compras",),
    "salary_income": ("salario", "trabalho"),
    "freelance_income": ("freelance", "extra"),
}


@dataclass(frozen=True)
class CategoryResolver:
    """
    Binds rule templates to the caller's categories by name fragments.

    ``name_fragments`` maps a category-name fragment to the keywords it stands
    for; a template binds to the first category whose name contains a fragment
    sharing a keyword with the template. ``template_fragments`` is the coarser
    fallback keyed by template id. Both tables are compared accent- and
    case-insensitively, so other locales can supply their own.
    """

    name_fragments: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_NAME_FRAGMENTS)
    )
    template_fragments: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_TEMPLATE_FRAGMENTS)
    )

    def resolve(self, template: RuleTemplate, categories: list[Category]) -> str | None:
        category_id = self._match_by_keywords(template, categories)
        if category_id is None:
            category_id = self._match_by_template_id(template, categories)
        return category_id

    def _match_by_keywords(
        self, template: RuleTemplate, categories: list[Category]
    ) -> str | None:
        template_keywords = {normalize_text(keyword) for keyword in template.keywords}
        for category in categories:
            category_name = normalize_text(category.name)
            for fragment, fragment_keywords in self.name_fragments.items():
                if normalize_text(fragment) not in category_name:
                    continue
                if template_keywords & {normalize_text(k) for k in fragment_keywords}:
                    return category.id
        return None

    def _match_by_template_id(
        self, template: RuleTemplate, categories: list[Category]
    ) -> str | None:
        for fragment in self.template_fragments.get(template.id, ()):
            normalized_fragment = normalize_text(fragment)
            for category in categories:
                if normalized_fragment in normalize_text(category.name):
                    return category.id
        return None


def build_builtin_rules(
    categories: list[Category],
    resolver: CategoryResolver | None = None,
    templates: tuple[RuleTemplate, ...] = DEFAULT_TEMPLATES,
) -> list[ClassificationRule]:
    resolver = resolver or CategoryResolver()
    rules: list[ClassificationRule] = []
    for template in templates:
        category_id = resolver.resolve(template, categories)
        if category_id is None:
            logger.debug("[RULES] Template '%s' has no matching category; dropped.", template.id)
            continue
        rules.append(ClassificationRule(
            id=template.id,
            keywords=list(template.keywords),
            category_id=category_id,
            confidence=template.confidence,
        ))
    return rules
