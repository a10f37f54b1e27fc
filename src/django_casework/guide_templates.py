"""Default guide-instruction text built from a case."""

from .conf import get_setting


def default_sections(case, guide_name: str = '', guide_phone: str = '') -> dict:
    """
    Return schedule, safety rules, precautions and emergency contact text.

    Keys match GuideInstruction field names so the result can be passed
    straight to create_or_update_guide_instruction().
    """
    hotline = get_setting('EMERGENCY_HOTLINE') or 'TBD'

    travel_schedule = "\n".join([
        "TRAVEL SCHEDULE",
        "",
        f"Reference: {case.reference}",
        f"Travel period: {case.departure_date.isoformat()} ~ {case.return_date.isoformat()}",
        f"Customer: {case.customer_name or '-'}",
        f"Passengers: {case.pax_count}",
        "",
        "[Day 1]",
        "- Meet at the departure airport and check in",
        "- Meet the guide on arrival",
        "- Hotel check-in and schedule briefing",
        "",
        "Detailed schedule may change depending on local conditions.",
    ])

    safety_rules = "\n".join([
        "SAFETY RULES",
        "",
        "1. Group conduct",
        "- Follow the guide's instructions",
        "- Tell the guide before leaving the group",
        "- Keep to assembly times and places",
        "",
        "2. Emergencies",
        "- Contact the guide immediately",
        "- Medical contact and hospital transfer procedure",
        "- Travel insurance claims",
        "",
        "3. Personal safety",
        "- Keep valuables secure",
        "- Respect local laws and customs",
        "- Take care with food and drink",
    ])

    precautions = "\n".join([
        "PRECAUTIONS",
        "",
        "1. Passengers",
        "- Check allergies",
        "- Note medication being taken",
        "- Note physical limitations",
        "",
        "2. Destination",
        "- Climate and weather",
        "- Security situation and areas to avoid",
        "- Currency and exchange",
        "",
        "3. Shopping and optional tours",
        "- No pressure selling",
        "- Price and refund policy",
        "- Guide commission transparency",
    ])

    emergency_contact = "\n".join([
        "EMERGENCY CONTACTS",
        "",
        f"- Guide: {guide_name or 'TBD'} {guide_phone}".rstrip(),
        f"- Head office 24h hotline: {hotline}",
        "- Local office:",
        "- Local hospital:",
        "- Consulate:",
    ])

    return {
        'travel_schedule': travel_schedule,
        'safety_rules': safety_rules,
        'precautions': precautions,
        'emergency_contact': emergency_contact,
    }
