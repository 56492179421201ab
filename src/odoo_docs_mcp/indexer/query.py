"""Query preprocessing and classification.

Everything here is table-driven: synonym expansion, technical variants and
the keyword lists used to tag a query are plain data so new categories can
be added without touching the matching code.
"""

import re
from collections.abc import Iterable

MIN_TERM_LENGTH = 3

# Bilingual (French/English) domain synonyms
SYNONYMS: dict[str, list[str]] = {
    "congé": ["leave", "vacation", "time off", "absence", "holiday"],
    "leave": ["congé", "vacation", "absence"],
    "projet": ["project", "task", "tache", "planning", "workflow"],
    "project": ["projet", "task", "planning"],
    "vente": ["sales", "sell", "customer", "client", "commercial"],
    "sales": ["vente", "sell", "customer", "commercial"],
    "achat": ["purchase", "vendor", "supplier", "fournisseur", "procurement"],
    "purchase": ["achat", "vendor", "supplier", "fournisseur"],
    "stock": ["inventory", "warehouse", "location", "entrepot"],
    "inventory": ["stock", "warehouse", "location"],
    "comptabilité": ["accounting", "finance", "invoice", "facture", "financial"],
    "accounting": ["comptabilité", "finance", "invoice", "facture"],
    "paie": ["payroll", "salary", "salaire", "wage", "remuneration"],
    "payroll": ["paie", "salary", "salaire", "wage"],
    "utilisateur": ["user", "employee", "employé", "person", "membre"],
    "user": ["utilisateur", "employee", "employé"],
    "configuration": ["config", "setup", "paramètre", "setting", "parameter"],
    "setup": ["configuration", "config", "paramètre"],
    "rapport": ["report", "reporting", "dashboard", "analytics"],
    "report": ["rapport", "reporting", "dashboard"],
    "module": ["addon", "app", "application", "extension"],
    "addon": ["module", "app", "application"],
    "api": ["interface", "endpoint", "webservice"],
    "base": ["database", "db", "donnée", "data"],
    "database": ["base", "db", "donnée"],
    "vue": ["view", "form", "tree", "kanban"],
    "view": ["vue", "form", "tree"],
    "modèle": ["model", "table", "record", "data"],
    "model": ["modèle", "table", "record"],
    "champ": ["field", "column", "attribute", "property"],
    "field": ["champ", "column", "attribute"],
    "workflow": ["flux", "process", "processus", "sequence"],
    "process": ["workflow", "flux", "processus"],
    "email": ["mail", "message", "notification", "courrier"],
    "mail": ["email", "message", "notification"],
    "website": ["site", "web", "portal", "ecommerce"],
    "portal": ["website", "site", "web"],
    "manufacturing": ["mrp", "production", "fabrication", "usine"],
    "mrp": ["manufacturing", "production", "fabrication"],
    "crm": ["customer", "lead", "opportunity", "prospect"],
    "lead": ["crm", "prospect", "opportunity"],
    "partner": ["client", "customer", "vendor", "contact"],
    "contact": ["partner", "client", "customer"],
    "invoice": ["facture", "bill", "billing", "facturation"],
    "facture": ["invoice", "bill", "billing"],
    "product": ["produit", "article", "item", "merchandise"],
    "produit": ["product", "article", "item"],
    "installation": ["install", "setup", "deployment", "configuration"],
    "install": ["installation", "setup", "deployment"],
    "erreur": ["error", "bug", "issue", "problem"],
    "error": ["erreur", "bug", "issue", "problem"],
}

TECHNICAL_VARIANTS: dict[str, list[str]] = {
    "odoo": ["erp", "openerp", "enterprise"],
    "xml": ["view", "template", "qweb"],
    "python": ["py", "script", "code"],
    "javascript": ["js", "script", "frontend"],
    "postgresql": ["postgres", "db", "database"],
    "css": ["style", "design", "frontend"],
    "html": ["template", "qweb", "frontend"],
}

# Domain tags: Odoo application areas
DOMAIN_PATTERNS: dict[str, list[str]] = {
    "hr": ["congé", "leave", "employee", "hr", "rh", "paie", "payroll", "timesheet"],
    "sales": ["vente", "sales", "customer", "devis", "quote", "order"],
    "purchase": ["achat", "purchase", "vendor", "supplier", "procurement"],
    "inventory": ["stock", "inventory", "warehouse", "location"],
    "accounting": ["comptabilité", "accounting", "facture", "invoice", "financial"],
    "project": ["projet", "project", "task", "planning"],
    "manufacturing": ["manufacturing", "mrp", "production", "bom"],
    "website": ["website", "ecommerce", "portal", "web"],
    "crm": ["crm", "lead", "opportunity", "prospect"],
}

# Intent tags: what the user is trying to do
INTENT_PATTERNS: dict[str, list[str]] = {
    "configuration": ["configuration", "setup", "config", "paramètre"],
    "development": ["développement", "development", "code", "python", "xml", "api"],
    "installation": ["installation", "install", "deployment"],
    "usage": ["utilisation", "usage", "comment", "how to"],
    "troubleshooting": ["erreur", "error", "problem", "bug", "issue"],
    "reporting": ["rapport", "report", "dashboard", "analytics"],
}

# Complexity tags; technical wins when both match
TECHNICAL_PATTERN = re.compile(r"api|python|xml|développement|code|custom")
BEGINNER_PATTERN = re.compile(r"comment|how|pourquoi|why|what|que")

GENERAL_TAG = "general"

# Keywords pulled from conversation history as contextual search terms
HISTORY_KEYWORDS = re.compile(
    r"\b(module|model|view|field|record|wizard|report|dashboard|workflow|api|orm)\b",
    re.IGNORECASE,
)
HISTORY_WINDOW = 3

DOMAIN_KEYWORDS = (
    "odoo", "erp", "crm", "sales", "purchase", "inventory", "accounting", "hr",
    "project", "vente", "achat", "stock", "comptabilité", "paie", "rh",
)


def preprocess_terms(query: str) -> list[str]:
    """
    Tokenize a query and expand it with synonyms and technical variants.

    Base terms are lower-cased whitespace tokens of at least three
    characters. Expansion is additive; the result keeps first-seen order
    and contains no duplicates.
    """
    base_terms = [t for t in query.lower().split() if len(t) >= MIN_TERM_LENGTH]
    terms = list(base_terms)
    for term in base_terms:
        terms.extend(SYNONYMS.get(term, ()))
    for term in base_terms:
        terms.extend(TECHNICAL_VARIANTS.get(term, ()))
    return list(dict.fromkeys(terms))


def _matching_tags(text: str, patterns: dict[str, list[str]]) -> list[str]:
    return [tag for tag, keywords in patterns.items() if any(k in text for k in keywords)]


def classify_query(query: str) -> list[str]:
    """
    Tag a query with domain, intent and complexity categories.

    Matching is a substring test against the keyword tables, so several
    tags can apply at once. Returns ``["general"]`` when nothing matches.
    """
    text = query.lower()
    tags = _matching_tags(text, DOMAIN_PATTERNS) + _matching_tags(text, INTENT_PATTERNS)

    if TECHNICAL_PATTERN.search(text):
        tags.append("technical")
    elif BEGINNER_PATTERN.search(text):
        tags.append("beginner")

    return tags or [GENERAL_TAG]


def is_domain_query(query: str) -> bool:
    """Whether the query mentions Odoo or one of its application areas."""
    text = query.lower()
    return any(keyword in text for keyword in DOMAIN_KEYWORDS)


def extract_contextual_terms(history: Iterable[dict]) -> list[str]:
    """
    Pull technical keywords out of the last user messages of a conversation.

    ``history`` items are chat messages shaped like
    ``{"role": "user", "content": "..."}``. Terms are lower-cased and
    deduplicated.
    """
    user_messages = [
        str(message.get("content", ""))
        for message in history
        if message.get("role") == "user"
    ]
    recent = " ".join(user_messages[-HISTORY_WINDOW:])
    found = [match.lower() for match in HISTORY_KEYWORDS.findall(recent)]
    return list(dict.fromkeys(found))
