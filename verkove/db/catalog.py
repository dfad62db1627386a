"""Seed catalog: base designs and enhancement options loaded into every new store."""

_IMG = "https://images.unsplash.com/photo-{}?ixlib=rb-4.0.3&auto=format&fit=crop&w=400&h=400"

BASE_DESIGNS = [
    {
        "name": "Classic Solitaire",
        "category": "rings",
        "description": "Timeless diamond solitaire ring with platinum band",
        "image_url": _IMG.format("1605100804763-247f67b3557e"),
        "specifications": {
            "materials": ["Platinum", "Diamond"],
            "dimensions": {"width": "10mm", "height": "15mm", "depth": "5mm"},
            "weight": "3.2g",
        },
    },
    {
        "name": "Pearl Elegance",
        "category": "necklaces",
        "description": "Elegant pearl necklace with gold chain",
        "image_url": _IMG.format("1515562141207-7a88fb7ce338"),
        "specifications": {
            "materials": ["Gold", "Pearl"],
            "dimensions": {"width": "450mm", "height": "12mm", "depth": "8mm"},
            "weight": "15.6g",
        },
    },
    {
        "name": "Geometric Drop",
        "category": "earrings",
        "description": "Modern geometric earrings with gemstones",
        "image_url": _IMG.format("1617038260897-41a1f14a8ca0"),
        "specifications": {
            "materials": ["Gold", "Sapphire"],
            "dimensions": {"width": "8mm", "height": "25mm", "depth": "4mm"},
            "weight": "2.8g",
        },
    },
    {
        "name": "Tennis Classic",
        "category": "bracelets",
        "description": "Diamond tennis bracelet with uniform stones",
        "image_url": _IMG.format("1515562141207-7a88fb7ce338"),
        "specifications": {
            "materials": ["Gold", "Diamond"],
            "dimensions": {"width": "180mm", "height": "6mm", "depth": "3mm"},
            "weight": "8.4g",
        },
    },
    {
        "name": "Art Deco Luxury",
        "category": "rings",
        "description": "Art deco inspired ring with geometric patterns",
        "image_url": _IMG.format("1603561596112-0a132b757442"),
        "specifications": {
            "materials": ["White Gold", "Emerald", "Diamond"],
            "dimensions": {"width": "12mm", "height": "18mm", "depth": "6mm"},
            "weight": "4.1g",
        },
    },
    {
        "name": "Bold Statement",
        "category": "necklaces",
        "description": "Multi-layer geometric necklace",
        "image_url": _IMG.format("1506630448388-4e683c67ddb0"),
        "specifications": {
            "materials": ["Gold", "Diamond"],
            "dimensions": {"width": "500mm", "height": "25mm", "depth": "10mm"},
            "weight": "28.3g",
        },
    },
]

SUB_DESIGNS = [
    {"name": "Diamond Accent", "type": "enhancement", "description": "Add diamond accents", "icon_name": "fas fa-star"},
    {"name": "Engraving", "type": "modification", "description": "Custom engraving", "icon_name": "fas fa-font"},
    {"name": "Gold Plating", "type": "enhancement", "description": "Gold plating finish", "icon_name": "fas fa-palette"},
    {"name": "Gemstone", "type": "enhancement", "description": "Add gemstones", "icon_name": "fas fa-gem"},
    {"name": "Vintage Style", "type": "modification", "description": "Vintage styling", "icon_name": "fas fa-crown"},
    {"name": "Modern Polish", "type": "enhancement", "description": "Modern polish finish", "icon_name": "fas fa-circle"},
]

# Placeholder images served when no real generation happens. Order matters:
# the prompt hash indexes into this list.
FALLBACK_IMAGES = [
    _IMG.format("1605100804763-247f67b3557e"),
    _IMG.format("1515562141207-7a88fb7ce338"),
    _IMG.format("1617038260897-41a1f14a8ca0"),
    _IMG.format("1603561596112-0a132b757442"),
    _IMG.format("1506630448388-4e683c67ddb0"),
]
