# storefront/domain/services/localization.py
from typing import Dict, Optional
from storefront.domain.models.product import LocalizedString, LocalizedText

DEFAULT_LANGUAGE = "en"


def resolve_text(value: Optional[LocalizedText], lang: str = DEFAULT_LANGUAGE) -> str:
    """
    The single place where catalog text is resolved.
    Plain strings are returned as-is; {en, he} objects fall back to English.
    """
    if value is None:
        return ""
    if isinstance(value, LocalizedString):
        return {"en": value.en, "he": value.he}.get(lang) or value.en or ""
    return value


# Checkout / cart messages shown to the customer
MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "cart.error_fullNameRequired": "Please enter your full name",
        "cart.error_emailRequired": "Email is required",
        "cart.error_emailInvalid": "Please enter a valid email",
        "cart.error_phoneRequired": "Please enter your phone number",
        "cart.error_cityRequired": "Please enter your city",
        "cart.error_streetRequired": "Please enter your street address",
        "cart.error_empty": "Your cart is empty",
        "cart.error_checkout": "Failed to place order",
        "cart.error_updateQty": "Failed to update quantity",
        "cart.error_removeItem": "Failed to remove item",
        "cart.cardUnavailable": "Card payments are not available yet. Please choose cash on delivery.",
        "cart.orderSuccess": "Order placed successfully",
    },
    "he": {
        "cart.error_fullNameRequired": "יש להזין שם מלא",
        "cart.error_emailRequired": "יש להזין כתובת מייל",
        "cart.error_emailInvalid": "יש להזין כתובת מייל תקינה",
        "cart.error_phoneRequired": "יש להזין מספר טלפון",
        "cart.error_cityRequired": "יש להזין עיר",
        "cart.error_streetRequired": "יש להזין כתובת מלאה",
        "cart.error_empty": "העגלה ריקה",
        "cart.error_checkout": "ביצוע ההזמנה נכשל",
        "cart.error_updateQty": "עדכון הכמות נכשל",
        "cart.error_removeItem": "הסרת הפריט נכשלה",
        "cart.cardUnavailable": "תשלום בכרטיס אשראי עדיין לא זמין. אנא בחרו תשלום במזומן בעת קבלה.",
        "cart.orderSuccess": "ההזמנה בוצעה בהצלחה",
    },
}


def t(key: str, lang: str = DEFAULT_LANGUAGE) -> str:
    table = MESSAGES.get(lang) or MESSAGES[DEFAULT_LANGUAGE]
    return table.get(key) or MESSAGES[DEFAULT_LANGUAGE].get(key, key)
