# auradhom/services/message_service.py
"""
WhatsApp order summary.

The summary is generated once at checkout and stored on the order
(`outbound_message`) so the back office can copy or resend it verbatim.
"""
import re
from urllib.parse import quote

from auradhom.models.order import CustomerSnapshot, LineItem

# department id -> (display name, {city id -> city name})
DEPARTMENTS: dict[str, tuple[str, dict[str, str]]] = {
    "brazzaville": ("Brazzaville", {"brazzaville-city": "Brazzaville"}),
    "pointe-noire": ("Pointe-Noire", {"pointe-noire-city": "Pointe-Noire"}),
}

CLOSING_LINE = (
    "Félicitations d'avoir décidé de porter bien plus qu'un vêtement, mais une aura."
)


def format_fcfa(amount: float) -> str:
    """12500 -> '12 500 FCFA'"""
    value = int(amount) if float(amount).is_integer() else amount
    return f"{value:,}".replace(",", " ") + " FCFA"


def department_name(department_id: str) -> str:
    entry = DEPARTMENTS.get(department_id)
    return entry[0] if entry else department_id


def city_name(department_id: str, city_id: str) -> str:
    entry = DEPARTMENTS.get(department_id)
    if entry is None:
        return city_id
    return entry[1].get(city_id, city_id)


def format_order_message(
    customer: CustomerSnapshot,
    line_items: list[LineItem],
    subtotal: float,
    shipping_cost: float,
    total: float,
    order_number: str,
) -> str:
    articles = "\n\n".join(
        "\n".join(
            [
                f"Article : {item.name}",
                f"Taille : {item.size or 'N/A'}",
                f"Couleur : {item.color or 'N/A'}",
                f"Quantité : {item.quantity}",
                f"Prix unitaire : {format_fcfa(item.unit_price)}",
            ]
        )
        for item in line_items
    )

    return f"""Je confirme ma commande :

{articles}

---

Récapitulatif du prix :
Sous-total : {format_fcfa(subtotal)}
Frais de livraison : {format_fcfa(shipping_cost)}
Total : {format_fcfa(total)}

---

Informations pour la livraison
ID Commande : {order_number}
Nom : {customer.last_name}
Prénom : {customer.first_name}
Adresse complète : {customer.address}
Département : {department_name(customer.department)}
Ville : {city_name(customer.department, customer.city)}
Quartier : {customer.district}

{CLOSING_LINE}"""


def whatsapp_link(phone: str, message: str) -> str:
    """
    Build a wa.me link; non-digit characters are stripped from the phone.
    """
    digits = re.sub(r"\D", "", phone)
    return f"https://wa.me/{digits}?text={quote(message, safe='')}"
