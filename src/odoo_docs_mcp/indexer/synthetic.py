"""Hand-written reference documents injected after each index build.

They cover cross-cutting questions that the raw documentation answers only
in scattered places. They carry ``source: synthetic`` metadata and are not
subject to the minimum content length.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from odoo_docs_mcp.indexer.models import DocumentRecord
from odoo_docs_mcp.indexer.parser import WORDS_PER_MINUTE


@dataclass(frozen=True)
class SyntheticTopic:
    id: str
    title: str
    section: str
    subsection: str
    description: str
    keywords: tuple[str, ...]
    content: str


SYNTHETIC_TOPICS: tuple[SyntheticTopic, ...] = (
    SyntheticTopic(
        id="faq_hr_leave_config",
        title="Configuration des congés - Guide complet",
        section="hr",
        subsection="time_off",
        description="Mettre en place les types de congés, les allocations et la validation dans Odoo",
        keywords=("congés", "leave", "hr", "time off", "vacation", "absence"),
        content="""
Configuration des congés (Time Off) dans Odoo.

Installation : ouvrez Apps, recherchez Time Off et installez l'application.
Le module Employees est installé automatiquement s'il manque.

Types de congés : menu Time Off > Configuration > Time Off Types. Créez un
type par règle de gestion (congés payés, RTT, maladie, formation). Pour
chaque type, choisissez le mode de validation (aucune, manager, RH, les
deux), l'unité (jours ou heures) et si une allocation est requise.

Allocations : menu Time Off > Management > Allocations. Attribuez un nombre
de jours par employé ou par département. Les plans d'accumulation
permettent d'acquérir des jours chaque mois automatiquement.

Demande de congé : l'employé ouvre My Time Off, choisit le type, les dates
et ajoute un motif. Le nombre de jours est calculé selon le calendrier de
travail de l'employé, jours fériés exclus.

Validation : le responsable retrouve les demandes en attente dans
Management > Time Off et peut approuver ou refuser. L'employé reçoit une
notification à chaque changement d'état.

Suivi : le rapport Time Off Analysis présente les soldes par employé et le
tableau de bord affiche les absences de l'équipe.

Bonnes pratiques : configurez les types de congés avant les allocations,
vérifiez les calendriers de travail et testez le circuit complet avec un
employé de test avant la mise en production.
""",
    ),
    SyntheticTopic(
        id="faq_sales_workflow",
        title="Workflow de vente - Du prospect à la facture",
        section="sales",
        subsection="crm",
        description="Le parcours complet d'une vente dans Odoo, de l'opportunité CRM au paiement",
        keywords=("sales", "vente", "crm", "devis", "commande", "facture", "prospect"),
        content="""
Workflow complet de vente dans Odoo.

Prospects : les pistes arrivent par saisie manuelle, import CSV, formulaire
du site web ou alias email. Elles sont assignées aux équipes commerciales
selon des règles d'attribution.

Qualification : le pipeline CRM suit les étapes Nouveau, Qualifié,
Proposition et Gagné. Planifiez des activités (appel, email, réunion) pour
ne perdre aucune opportunité.

Devis : depuis l'opportunité, cliquez sur New Quotation. Les produits, les
listes de prix, les remises et les taxes sont appliqués automatiquement. Un
modèle de devis peut ajouter des options et des conditions.

Confirmation : le client signe et paie en ligne depuis le portail, ou le
commercial confirme le devis. La commande crée les bons de livraison quand
l'application Inventory est installée.

Facturation : selon la politique de facturation (quantités commandées ou
livrées), créez la facture depuis la commande puis enregistrez le paiement.
Les relances automatiques suivent les factures impayées.

Indicateurs : taux de conversion du pipeline, cycle de vente moyen, panier
moyen et prévisions de chiffre d'affaires par période.
""",
    ),
    SyntheticTopic(
        id="faq_module_development",
        title="Développement de modules - Guide développeur",
        section="developer",
        subsection="modules",
        description="Structure, manifeste, modèles et vues d'un module Odoo personnalisé",
        keywords=("module", "développement", "development", "python", "xml", "manifest", "model"),
        content="""
Développer un module Odoo.

Structure : un module est un package Python contenant __init__.py,
__manifest__.py, puis les dossiers models, views, security, data et static.

Manifeste : __manifest__.py déclare le nom, la version (par exemple
17.0.1.0.0), la catégorie, les dépendances (base, sale, stock), les fichiers
de données chargés dans l'ordre et la licence.

Modèles : une classe Python hérite de models.Model et définit _name,
_description et ses champs (fields.Char, fields.Many2one, fields.Date). Les
méthodes décorées par api.depends calculent des champs, api.constrains
valide les données.

Vues : les vues XML (form, list, kanban, search) sont déclarées comme des
enregistrements ir.ui.view. Les actions et les menus rendent le modèle
accessible dans l'interface.

Sécurité : le fichier ir.model.access.csv donne les droits de lecture,
écriture, création et suppression par groupe. Les règles d'enregistrement
filtrent les lignes visibles.

Installation : placez le module dans un chemin addons, activez le mode
développeur, mettez à jour la liste des applications puis installez le
module. Consultez les logs du serveur pour les erreurs de chargement.
""",
    ),
)


def build_synthetic_documents(now: datetime | None = None) -> list[DocumentRecord]:
    """Build DocumentRecords for every synthetic topic."""
    now = now or datetime.now(timezone.utc)
    documents = []
    for topic in SYNTHETIC_TOPICS:
        content = topic.content.strip()
        word_count = len(content.split())
        documents.append(
            DocumentRecord(
                id=topic.id,
                file_path=f"synthetic/{topic.id}",
                title=topic.title,
                description=topic.description,
                content=content,
                section=topic.section,
                subsection=topic.subsection,
                keywords=list(topic.keywords),
                word_count=word_count,
                reading_time=math.ceil(word_count / WORDS_PER_MINUTE),
                file_size=len(content.encode("utf-8")),
                last_updated=now.isoformat(),
                metadata={
                    "source": "synthetic",
                    "type": "faq",
                    "priority": 0.9,
                    "language": "fr",
                },
            )
        )
    return documents
