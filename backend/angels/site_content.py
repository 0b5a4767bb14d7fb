"""Static content for the public marketing pages.

The site frontend renders these blocks; nothing here touches Supabase.
Each page has a ``title`` and ``description`` used for the HTML head,
a ``heading`` and a list of ``sections``.
"""

from typing import Any, Dict, List, Optional

ORGANIZATION_NAME = "Kelly's Angels Inc."
MAILING_ADDRESS_LINES = ["P.O. Box 2034", "Wilton, NY 12831"]
SERVICE_AREA = "New York's Capital Region"

NAVIGATION: List[Dict[str, str]] = [
    {"href": "/", "label": "Home"},
    {"href": "/who-we-are", "label": "Who We Are"},
    {"href": "/what-we-do", "label": "What We Do"},
    {"href": "/programs", "label": "Programs"},
    {"href": "/podcast", "label": "Podcast"},
    {"href": "/events", "label": "Events"},
    {"href": "/scholarships", "label": "Scholarships"},
    {"href": "/donate", "label": "Donate"},
]

CALL_TO_ACTION = {"href": "/programs", "label": "Apply Now"}

FOOTER: Dict[str, Any] = {
    "organization": ORGANIZATION_NAME,
    "tagline": "Making a difference, one smile at a time",
    "quick_links": [
        {"href": "/who-we-are", "label": "Who We Are"},
        {"href": "/what-we-do", "label": "What We Do"},
        {"href": "/programs", "label": "Programs"},
        {"href": "/events", "label": "Events"},
        {"href": "/scholarships", "label": "Scholarships"},
        {"href": "/donate", "label": "Donate"},
    ],
    "mailing_address": MAILING_ADDRESS_LINES,
    "contact_href": "/contact",
    "legal_links": [
        {"href": "/privacy", "label": "Privacy Policy"},
        {"href": "/staff/login", "label": "Staff Login"},
    ],
    "tax_status": "501(c)(3) nonprofit organization",
}

PROGRAM_SUMMARIES: List[Dict[str, str]] = [
    {
        "application_type": "fun_grant",
        "name": "Fun Grant",
        "summary": "Creating joyful memories for children who have lost a parent or sibling",
        "detail": (
            "Provides experiences like tickets to sporting events, theme parks, "
            "Broadway shows, or other activities that bring smiles during "
            "difficult times."
        ),
        "typical_range": "$100 - $5,000",
    },
    {
        "application_type": "angel_aid",
        "name": "Angel Aid",
        "summary": "Financial support for families struggling with expenses after loss",
        "detail": (
            "One-time grants to help with overwhelming medical bills, funeral "
            "costs, or daily living expenses for families adjusting to life "
            "after losing a loved one."
        ),
        "typical_range": "$500 - $10,000",
    },
    {
        "application_type": "angel_hug",
        "name": "Angel Hug",
        "summary": "Self-care support for surviving parents and guardians",
        "detail": (
            "Modest grants for surviving parents to take care of themselves: "
            "travel, entertainment, pampering, or simple breaks that help "
            "during the grieving process."
        ),
        "typical_range": "Up to $500",
    },
    {
        "application_type": "hugs_ukraine",
        "name": "Hugs for Ukraine",
        "summary": "Supporting Ukrainian families relocated to the Capital Region",
        "detail": (
            "One-time grants for children in Ukrainian families who have been "
            "relocated to New York's Capital Region, helping them adjust to "
            "their new lives."
        ),
        "typical_range": "$100 - $2,000",
    },
]


def _section(heading: str, body: str, **extra: Any) -> Dict[str, Any]:
    return {"heading": heading, "body": body, **extra}


PAGES: Dict[str, Dict[str, Any]] = {
    "home": {
        "title": "Kelly's Angels Inc. - Supporting Children & Families",
        "description": (
            "Kelly's Angels supports children and families in New York's "
            "Capital Region who have been affected by loss."
        ),
        "heading": "Making a difference, one smile at a time",
        "sections": [
            _section(
                "Our Mission",
                "We bring joy and relief to children who have lost a parent or "
                "sibling, and support the families caring for them.",
            ),
            _section(
                "Every dollar donated",
                "We are an all-volunteer 501(c)(3) nonprofit, so every dollar "
                "goes directly to the families we serve.",
            ),
        ],
        "actions": [
            {"href": "/programs", "label": "Apply for a Grant"},
            {"href": "/donate", "label": "Make a Donation"},
        ],
    },
    "about": {
        "title": "About - Kelly's Angels Inc.",
        "description": "The story of Kelly's Angels and the families we help.",
        "heading": "About Kelly's Angels",
        "sections": [
            _section(
                "Our Story",
                "Kelly's Angels was founded by WNYT-TV anchor Mark Mulholland "
                "in memory of his wife, Kelly Mulholland.",
            ),
            _section(
                "100% Volunteer-Run Organization",
                "No one at Kelly's Angels draws a salary.",
            ),
            _section(
                "Our Programs",
                "Fun Grants, Angel Aid, Angel Hugs, Scholarships and Hugs for Ukraine.",
            ),
        ],
        "actions": [
            {"href": "/programs", "label": "Apply for a Grant"},
            {"href": "/donate", "label": "Donate Today"},
        ],
    },
    "who-we-are": {
        "title": "Who We Are - Kelly's Angels Inc.",
        "description": "Meet the founders and volunteers behind Kelly's Angels.",
        "heading": "Who We Are",
        "sections": [
            _section(
                "Our Founders",
                "Mark Mulholland started Kelly's Angels to honor Kelly Mulholland "
                "and the love she had for children.",
            ),
            _section(
                "An all-volunteer organization",
                "Our board and staff volunteer their time to review every "
                "application and run every event.",
            ),
        ],
        "actions": [{"href": "/what-we-do", "label": "Learn What We Do"}],
    },
    "what-we-do": {
        "title": "What We Do - Kelly's Angels Inc.",
        "description": "Grant programs and scholarships for Capital Region families.",
        "heading": "What We Do",
        "sections": [
            _section("Grant Programs", "", programs=PROGRAM_SUMMARIES),
            _section(
                "Scholarships",
                "Annual scholarships for college-bound seniors who have "
                "persevered through adversity.",
            ),
        ],
        "actions": [
            {"href": "/scholarships", "label": "Learn More About Scholarships"},
            {"href": "/programs", "label": "Apply for a Grant"},
            {"href": "/donate", "label": "Support Our Mission"},
        ],
    },
    "programs": {
        "title": "Programs - Kelly's Angels Inc.",
        "description": (
            "Apply for Fun Grants, Angel Aid, Angel Hug, or Hugs for Ukraine "
            "programs. We help children and families in NY's Capital Region "
            "affected by loss."
        ),
        "heading": "Our Programs",
        "sections": [
            _section(
                "Overview",
                "Kelly's Angels offers several grant programs to support "
                "children and families in New York's Capital Region who have "
                "been affected by loss. Select a program below to learn more "
                "and apply.",
                programs=PROGRAM_SUMMARIES,
            ),
            _section(
                "Ready to Apply?",
                "All applications are reviewed by our volunteer staff, and we "
                "typically respond within 5-7 business days.",
            ),
        ],
        "actions": [{"href": "/programs#apply", "label": "Apply Now"}],
    },
    "scholarships": {
        "title": "Scholarships - Kelly's Angels Inc.",
        "description": "Scholarships for Capital Region high school seniors.",
        "heading": "Kelly's Angels Scholarships",
        "sections": [
            _section(
                "Who Should Apply",
                "High school seniors at participating Capital Region schools.",
                criteria=[
                    "High School Senior",
                    "Perseverance Through Adversity",
                    "Service to Others",
                    "Financial Need",
                    "College-Bound",
                ],
            ),
            _section(
                "How to Apply",
                "Submit the scholarship application with an essay of at least "
                "100 characters, your transcript and a recommendation letter.",
            ),
        ],
        "actions": [
            {"href": "/programs", "label": "View All Programs"},
            {"href": "/donate", "label": "Support Our Mission"},
        ],
    },
    "events": {
        "title": "Events - Kelly's Angels Inc.",
        "description": (
            "Join us for the Mother-Lovin' 5K and other events supporting "
            "children and families in New York's Capital Region."
        ),
        "heading": "Events",
        "sections": [
            _section(
                "Mother-Lovin' 5K",
                "A celebration of mothers and families. Typically held in early "
                "May; 100% of proceeds support our programs.",
                when="(Typically early May)",
                where="(Location details TBA)",
            ),
            _section(
                "Get Involved",
                "Register as a runner or walker, volunteer, or sponsor the event.",
            ),
        ],
        "actions": [{"href": "/programs", "label": "View Programs"}],
    },
    "podcast": {
        "title": "The Up Beat Podcast - Kelly's Angels Inc.",
        "description": (
            "Listen to The Up Beat podcast for hope and inspiration. Stories "
            "from families dealing with loss and adversity, available on all "
            "major podcast platforms."
        ),
        "heading": "The Up Beat Podcast",
        "sections": [
            _section(
                "About the Show",
                "Hosted by Mark Mulholland, founder of Kelly's Angels Inc., each "
                "episode features real stories from families who have faced "
                "loss and adversity.",
                platforms=["Apple Podcasts", "Spotify", "Google Podcasts"],
            ),
        ],
        "actions": [{"href": "/donate", "label": "Support Our Mission"}],
    },
    "donate": {
        "title": "Donate - Kelly's Angels Inc.",
        "description": "Support children and families affected by loss.",
        "heading": "Support Our Mission",
        "sections": [
            _section(
                "Give Online",
                "Make a one-time or monthly gift through our secure checkout.",
            ),
            _section(
                "Give by Mail",
                "Checks payable to Kelly's Angels Inc.",
                address=MAILING_ADDRESS_LINES,
            ),
        ],
        "actions": [],
    },
    "contact": {
        "title": "Contact - Kelly's Angels Inc.",
        "description": "Get in touch with Kelly's Angels Inc.",
        "heading": "Contact Us",
        "sections": [
            _section(
                "Mailing Address",
                ORGANIZATION_NAME,
                address=MAILING_ADDRESS_LINES,
            ),
            _section("Service Area", SERVICE_AREA),
            _section(
                "About Response Times",
                "We are all volunteers; please allow a few business days for a reply.",
            ),
        ],
        "actions": [],
    },
    "volunteer": {
        "title": "Volunteer Opportunities - Kelly's Angels Inc.",
        "description": "Help at events and programs across the Capital Region.",
        "heading": "Volunteer With Us",
        "sections": [
            _section(
                "Open Opportunities",
                "Browse upcoming opportunities and sign up from the volunteer portal.",
                opportunities_endpoint="/api/v1/volunteer-opportunities",
            ),
        ],
        "actions": [{"href": "/volunteer/login", "label": "Volunteer Login"}],
    },
}


def list_pages() -> List[Dict[str, str]]:
    """Slug, title and description for every page (sitemap)."""
    return [
        {"slug": slug, "title": page["title"], "description": page["description"]}
        for slug, page in PAGES.items()
    ]


def get_page(slug: str) -> Optional[Dict[str, Any]]:
    page = PAGES.get(slug)
    if page is None:
        return None
    return {"slug": slug, **page}
