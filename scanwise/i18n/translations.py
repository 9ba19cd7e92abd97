"""UI string tables and the ``translate`` lookup.

Tables are nested dicts keyed by dotted paths (``productScanner.autoButton``).
Leaves are either plain strings or callables taking positional args.
Lookup falls back to English, then to the key itself.
"""

from typing import Callable, Dict, Union

FALLBACK_LOCALE = "en"

Entry = Union[str, Callable[..., str], Dict[str, "Entry"]]

TRANSLATIONS: Dict[str, Dict[str, Entry]] = {
    "en": {
        "pageSubtitle": "Instantly identify items and get AI-powered information.",
        "generalItemsButton": "General Items",
        "medicinesButton": "Medicines",
        "footerCopyright": lambda year: f"© {year} LIBRTOD.",
        "footerCraftedWithAI": "Crafted with AI.",
        "english": "English",
        "marathi": "मराठी",
        "appDescription": "Identify products and get detailed descriptions with LIBRTOD.",
        "productScanner": {
            "liveCameraFeedTitle": "Live Camera Feed",
            "autoDetectionActive": lambda mode: f"Automatic detection is active for {mode} items.",
            "manualDetectionMode": "Manual detection mode. Point camera and use button below.",
            "detectingStatus": "(Detecting...)",
            "autoButton": "Auto",
            "manualButton": "Manual",
            "detectManuallyButton": "Capture & Detect Manually",
            "detectOverrideButton": "Detect Now (Override Auto)",
            "autoDetectionHint": "Auto-detection active. Override or wait for next scan.",
            "manualDetectionHint": "Click the button above to detect an object.",
            "detectionErrorTitle": "Detection Error",
            "cameraAccessRequiredTitle": "Camera Access Required",
            "cameraAccessRequiredDescription": "Camera access is needed for detection.",
            "cameraAccessDeniedTitle": "Camera Access Denied",
            "cameraAccessDeniedDescription": "Please enable camera permissions.",
            "usingDefaultCameraTitle": "Using Default Camera",
            "usingDefaultCameraDescription": "Could not access back camera. Switched to default camera.",
            "objectDetectedTitle": "Object Detected",
            "objectDetectedDescription": lambda name: f"Fields populated with: {name}",
            "itemScannerTitle": "Item Scanner",
            "medicineIdentifierTitle": "Medicine Identifier",
            "formDescription": "Detected details appear below. Then, get AI-generated information.",
            "detectedProductNameLabel": "Detected Product Name",
            "detectedMedicineNameLabel": "Detected Medicine Name",
            "contextCluesLabel": "Context Clues (from detection)",
            "productNamePlaceholder": "e.g., Smart Coffee Maker",
            "medicineNamePlaceholder": "e.g., Ibuprofen",
            "contextCluesPlaceholder": "e.g., brand, type, visual cues",
            "getAIDescriptionButton": "Get AI Description",
            "getMedicineInfoButton": "Get Medicine Info",
            "generatingButton": "Generating...",
            "errorAlertTitle": "Error",
            "aiGeneratedDescriptionLabel": "AI Generated Description:",
            "typicalUsageLabel": "Typical Usage:",
            "howToUseLabel": "How to Use (General Guidance):",
            "commonBrandNamesLabel": "Common Brand Names:",
            "generalPrecautionsLabel": "General Precautions:",
            "importantDisclaimerTitle": "Important Disclaimer",
            "importantDisclaimerText": (
                "This information is for general knowledge and not a substitute for "
                "professional medical advice. Always consult a healthcare provider "
                "for medical concerns."
            ),
        },
    },
    "mr": {
        "pageSubtitle": "वस्तू त्वरित ओळखा आणि AI-शक्तीवर आधारित माहिती मिळवा.",
        "generalItemsButton": "सामान्य वस्तू",
        "medicinesButton": "औषधे",
        "footerCopyright": lambda year: f"© {year} लिबर्टोड.",
        "footerCraftedWithAI": "AI ने तयार केले आहे.",
        "english": "English",
        "marathi": "मराठी",
        "appDescription": "लिबर्टोडसह उत्पादने ओळखा आणि तपशीलवार माहिती मिळवा.",
        "productScanner": {
            "liveCameraFeedTitle": "थेट कॅमेरा फीड",
            "autoDetectionActive": lambda mode: f"{mode} वस्तूंसाठी स्वयंचलित ओळख सक्रिय आहे.",
            "manualDetectionMode": "मॅन्युअल ओळख मोड. कॅमेरा निर्देशित करा आणि खालील बटण वापरा.",
            "detectingStatus": "(ओळखत आहे...)",
            "autoButton": "स्वयं",
            "manualButton": "मॅन्युअल",
            "detectManuallyButton": "मॅन्युअली कॅप्चर करा आणि ओळखा",
            "detectOverrideButton": "आता ओळखा (स्वयं ओव्हरराइड करा)",
            "autoDetectionHint": "स्वयं-ओळख सक्रिय. ओव्हरराइड करा किंवा पुढील स्कॅनची प्रतीक्षा करा.",
            "manualDetectionHint": "वस्तू ओळखण्यासाठी वरील बटणावर क्लिक करा.",
            "detectionErrorTitle": "ओळख त्रुटी",
            "cameraAccessRequiredTitle": "कॅमेरा प्रवेश आवश्यक",
            "cameraAccessRequiredDescription": "ओळखण्यासाठी कॅमेरा प्रवेश आवश्यक आहे.",
            "cameraAccessDeniedTitle": "कॅमेरा प्रवेश नाकारला",
            "cameraAccessDeniedDescription": "कृपया कॅमेरा परवानग्या सक्षम करा.",
            "itemScannerTitle": "वस्तू स्कॅनर",
            "medicineIdentifierTitle": "औषध ओळखकर्ता",
            "formDescription": "ओळखलेले तपशील खाली दिसतील. त्यानंतर, AI-व्युत्पन्न माहिती मिळवा.",
            "detectedProductNameLabel": "ओळखलेल्या उत्पादनाचे नाव",
            "detectedMedicineNameLabel": "ओळखलेल्या औषधाचे नाव",
            "contextCluesLabel": "संदर्भ संकेत (ओळखीतून)",
            "productNamePlaceholder": "उदा. स्मार्ट कॉफी मेकर",
            "medicineNamePlaceholder": "उदा. इबुप्रोफेन",
            "contextCluesPlaceholder": "उदा. ब्रँड, प्रकार, व्हिज्युअल संकेत",
            "getAIDescriptionButton": "AI वर्णन मिळवा",
            "getMedicineInfoButton": "औषधाची माहिती मिळवा",
            "generatingButton": "तयार करत आहे...",
            "errorAlertTitle": "त्रुटी",
            "aiGeneratedDescriptionLabel": "AI व्युत्पन्न वर्णन:",
            "typicalUsageLabel": "ठराविक वापर:",
            "commonBrandNamesLabel": "सामान्य ब्रँड नावे:",
            "generalPrecautionsLabel": "सामान्य खबरदारी:",
            "importantDisclaimerTitle": "महत्त्वाची सूचना",
            "importantDisclaimerText": (
                "ही माहिती सामान्य ज्ञानासाठी आहे आणि व्यावसायिक वैद्यकीय सल्ल्याचा पर्याय नाही. "
                "वैद्यकीय समस्यांसाठी नेहमी आरोग्य सेवा प्रदात्याचा सल्ला घ्या."
            ),
        },
    },
}


def _lookup(table: Dict[str, Entry], keys: list):
    current = table
    for k in keys:
        if isinstance(current, dict) and k in current:
            current = current[k]
        else:
            return None
    return None if isinstance(current, dict) else current


def translate(locale: str, key: str, *args) -> str:
    """Resolve a dotted *key* for *locale*, falling back to English, then to *key*."""
    keys = key.split(".")
    entry = _lookup(TRANSLATIONS.get(locale, {}), keys)
    if entry is None and locale != FALLBACK_LOCALE:
        entry = _lookup(TRANSLATIONS[FALLBACK_LOCALE], keys)
    if entry is None:
        return key
    if callable(entry):
        return entry(*args)
    return entry
