from typing import Dict

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "nav.products": "Products",
        "nav.about": "About",
        "nav.contact": "Contact",
        "products.all": "All",
        "products.empty": "No products match your search",
        "admin.confirm_delete_product": "Delete this product?",
        "admin.confirm_delete_category": "Delete this category?",
        "errors.generic": "Something went wrong",
        "errors.required": "This field is required",
        "errors.validation": "Please fix the highlighted fields",
        "errors.size_exceeded": "Image is larger than 5 MB",
        "errors.upload_failed": "Could not process the image, please try another file",
        "errors.save_failed": "Could not save your changes, please try again",
        "errors.load_failed": "Could not load data",
        "errors.category_exists": "This category already exists",
        "errors.category_empty": "Enter a category name",
        "errors.unknown_category": "Choose one of the existing categories",
        "errors.admin_only": "Administrator access required",
    },
    "fr": {
        "nav.products": "Produits",
        "nav.about": "À propos",
        "nav.contact": "Contact",
        "products.all": "Tous",
        "products.empty": "Aucun produit ne correspond à votre recherche",
        "admin.confirm_delete_product": "Supprimer ce produit ?",
        "admin.confirm_delete_category": "Supprimer cette catégorie ?",
        "errors.generic": "Une erreur est survenue",
        "errors.required": "Ce champ est obligatoire",
        "errors.validation": "Veuillez corriger les champs signalés",
        "errors.size_exceeded": "L'image dépasse 5 Mo",
        "errors.upload_failed": "Impossible de traiter l'image, essayez un autre fichier",
        "errors.save_failed": "Enregistrement impossible, veuillez réessayer",
        "errors.load_failed": "Impossible de charger les données",
        "errors.category_exists": "Cette catégorie existe déjà",
        "errors.category_empty": "Saisissez un nom de catégorie",
        "errors.unknown_category": "Choisissez une catégorie existante",
        "errors.admin_only": "Accès administrateur requis",
    },
}


def translate(key: str, language: str = DEFAULT_LANGUAGE) -> str:
    table = TRANSLATIONS.get(language, {})
    if key in table:
        return table[key]
    return TRANSLATIONS[DEFAULT_LANGUAGE].get(key, key)
