"""Industry-specific copy, color and layout guidance for generated websites.

Both the project website tool and the lead website generator resolve a
business description (or a lead's industry) against these tables so the
prompt carries tone, trust signals, palette and section order for that kind
of business instead of a generic brief.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class IndustryContext:
    industry: str
    tone: tuple[str, ...]
    content_themes: tuple[str, ...]
    section_priorities: tuple[str, ...]
    copy_guidelines: str
    visual_emphasis: str
    cta_language: tuple[str, ...]
    trust_signals: tuple[str, ...]


@dataclass(frozen=True)
class WebsiteStyle:
    style: str
    sections: tuple[str, ...]
    color_scheme: str
    typography: str
    imagery: str
    cta_style: str


@dataclass(frozen=True)
class BusinessPersonality:
    tone: str
    sophistication: str
    target_audience: str
    price_position: str


@dataclass(frozen=True)
class DesignAdaptations:
    color_scheme: str
    typography: str
    spacing: str
    imagery: str


INDUSTRY_CONTEXTS: dict[str, IndustryContext] = {
    "smma": IndustryContext(
        industry="Social Media Marketing Agency",
        tone=("results-driven", "data-focused", "professional", "confident"),
        content_themes=("ROI metrics", "client results", "growth numbers", "social proof", "case studies"),
        section_priorities=(
            'Hero: "Get X% More Leads with Our Proven Strategy"',
            "Client Results: specific metrics (followers, engagement, revenue)",
            "Case Studies: before/after stories with numbers",
            "Services: specific to social platforms",
            "Testimonials: quote measurable results",
            "Pricing: ROI-based packages",
        ),
        copy_guidelines=(
            "Use specific numbers such as \"300% follower growth\". Emphasize measurable outcomes and ROI. "
            "Address stagnant growth and low engagement. Use action-oriented language."
        ),
        visual_emphasis="Analytics dashboards, before/after metrics, growth charts, milestone badges",
        cta_language=("Book Your Strategy Call", "Claim Your Free Audit", "See Your Growth Potential"),
        trust_signals=("Client logos", "Success metrics", "Years in business", "Platform partner badges"),
    ),
    "ai_automation": IndustryContext(
        industry="AI Automation Agency",
        tone=("innovative", "technical", "forward-thinking", "confident"),
        content_themes=("AI capabilities", "efficiency gains", "cost savings", "workflow optimization"),
        section_priorities=(
            'Hero: "Automate Your Business with AI"',
            "How It Works: step-by-step automation process",
            "Use Cases: industry-specific automation examples",
            "ROI: time and cost savings",
            "Integrations: compatible tools",
            "Implementation: timeline and support",
        ),
        copy_guidelines=(
            "Focus on problem, solution and outcome. Explain AI concepts simply. Emphasize time savings and "
            "cost reduction. Address implementation fears directly."
        ),
        visual_emphasis="Workflow diagrams, integration icons, before/after efficiency comparisons",
        cta_language=("Start Your Free Automation Audit", "Schedule a Demo", "Explore Use Cases"),
        trust_signals=("Technology partners", "Implementations delivered", "Testimonials with metrics"),
    ),
    "web_design": IndustryContext(
        industry="Web Design Agency",
        tone=("creative", "modern", "professional", "detail-oriented"),
        content_themes=("design quality", "user experience", "brand transformation", "portfolio", "process"),
        section_priorities=(
            "Portfolio: best work with descriptions",
            "Process: transparent design and development workflow",
            "Services: design, development, UX, SEO",
            "Client Results: time to launch, performance metrics",
            "Testimonials: transformation and satisfaction",
            "Contact: project inquiry form",
        ),
        copy_guidelines=(
            "Emphasize user experience and visual storytelling. Mention responsive, mobile-first builds. "
            "Include turnaround times."
        ),
        visual_emphasis="Portfolio pieces, website mockups, before/after website comparisons",
        cta_language=("View Our Portfolio", "Start Your Project", "Get a Free Website Audit"),
        trust_signals=("Award-winning designs", "Recognizable clients", "Years in business"),
    ),
    "restaurant": IndustryContext(
        industry="Restaurant",
        tone=("warm", "inviting", "passionate", "descriptive"),
        content_themes=("food quality", "ambiance", "chef expertise", "menu highlights", "dining experience"),
        section_priorities=(
            "Hero: food photography with atmosphere",
            "Story: chef background and culinary philosophy",
            "Menu Highlights: signature dishes",
            "Ambiance: the dining experience",
            "Location & Hours: easy reservations",
            "Reviews: customer ratings",
        ),
        copy_guidelines=(
            "Use sensory language for aromas, textures and flavors. Tell the sourcing story. Mention chef "
            "credentials. Put pricing and reservation info up front."
        ),
        visual_emphasis="Food photography, interior shots, chef in action, plated dishes",
        cta_language=("Reserve Your Table", "Order Online", "See Our Specials"),
        trust_signals=("Awards", "Chef credentials", "Press features", "Customer reviews"),
    ),
    "gym": IndustryContext(
        industry="Gym / Fitness Center",
        tone=("motivational", "supportive", "energetic", "inclusive"),
        content_themes=("fitness transformation", "community", "affordable pricing", "class variety", "results"),
        section_priorities=(
            "Hero: transformation stories and motivation",
            "Classes: program variety",
            "Pricing: membership tiers with no hidden fees",
            "Trainers: certified trainer bios",
            "Facilities: equipment and amenities",
            "Community: member success stories",
        ),
        copy_guidelines=(
            'Emphasize accessibility and value. Highlight "no commitment" and flexible schedules. '
            "Address intimidation, cost and time. Celebrate all fitness levels."
        ),
        visual_emphasis="Member transformations, classes in progress, modern equipment, trainers coaching",
        cta_language=("Start Your Free Week", "Claim Your Trial", "Get Fit Today"),
        trust_signals=("Member count", "Trainer certifications", "Transformation stories"),
    ),
    "dentist": IndustryContext(
        industry="Dental Practice",
        tone=("professional", "reassuring", "expert", "caring"),
        content_themes=("patient comfort", "expertise", "technology", "preventive care", "results"),
        section_priorities=(
            "Hero: patient comfort and care",
            "Services: dental services explained",
            "Technology: modern equipment",
            "Team: dentist and hygienist credentials",
            "Patient Experience: comfort measures",
            "Testimonials: patient satisfaction",
        ),
        copy_guidelines=(
            "Address dental anxiety directly. Explain procedures in patient-friendly language. Mention "
            "emergency availability and accepted insurance."
        ),
        visual_emphasis="Modern office, friendly staff, smile transformations, calm environment",
        cta_language=("Schedule Your Checkup", "Book an Appointment", "New Patient Special"),
        trust_signals=("DDS/DMD credentials", "Years in practice", "Patient reviews", "Insurance accepted"),
    ),
    "lawyer": IndustryContext(
        industry="Law Firm",
        tone=("professional", "authoritative", "trustworthy", "expert"),
        content_themes=("expertise", "client success", "experience", "specialization", "legal strategy"),
        section_priorities=(
            "Hero: practice areas and track record",
            "Practice Areas: services in detail",
            "Team: attorney bios and credentials",
            "Results: case outcomes",
            "Process: how the legal process works",
            "Contact: free consultation form",
        ),
        copy_guidelines=(
            "Be specific about practice areas, years in practice and case outcomes. Explain legal concepts "
            "clearly. Include ethical disclaimers."
        ),
        visual_emphasis="Professional team photos, office spaces, credentials",
        cta_language=("Schedule Your Free Consultation", "Discuss Your Case", "Call for Immediate Help"),
        trust_signals=("Bar certification", "Years in practice", "Successful cases", "Client testimonials"),
    ),
    "realtor": IndustryContext(
        industry="Real Estate Agent / Brokerage",
        tone=("professional", "trustworthy", "knowledgeable", "helpful"),
        content_themes=("market expertise", "buyer/seller success", "local knowledge", "listings"),
        section_priorities=(
            'Hero: "Find Your Perfect Home" or "Sell for Maximum Value"',
            "Listings: featured properties",
            "Market Expertise: local data and trends",
            "Success Stories: testimonials with sale prices",
            "Neighborhoods: area guides",
            "Process: buying and selling timeline",
        ),
        copy_guidelines=(
            "Include market data and trends. Highlight local knowledge. Use testimonials with sale prices "
            "and mention negotiation results."
        ),
        visual_emphasis="Property photos, neighborhood views, market charts, happy homeowners",
        cta_language=("Search Homes Now", "Get Your Home Valuation", "Schedule a Showing"),
        trust_signals=("Years in real estate", "Properties sold", "Client testimonials"),
    ),
    "salon": IndustryContext(
        industry="Hair Salon / Spa",
        tone=("warm", "welcoming", "expert", "glamorous"),
        content_themes=("beauty transformation", "relaxation", "expert care", "quality products"),
        section_priorities=(
            "Hero: relaxation and transformation",
            "Services: hair, nails and spa treatments",
            "Stylists: team specialties",
            "Ambiance: the salon environment",
            "Products: premium brands",
            "Specials: new client offers",
        ),
        copy_guidelines=(
            "Use sensory and transformational language. Highlight self-care and product quality. Make "
            "booking feel effortless."
        ),
        visual_emphasis="Stylists at work, salon interior, before/after transformations",
        cta_language=("Book Your Appointment", "Claim Your First Visit Special", "Experience Our Spa"),
        trust_signals=("Stylist certifications", "Premium product lines", "Client testimonials"),
    ),
    "saas": IndustryContext(
        industry="SaaS / Software Company",
        tone=("innovative", "technical", "friendly", "value-focused"),
        content_themes=("product features", "business outcomes", "integrations", "ease of use", "ROI"),
        section_priorities=(
            "Hero: the core problem solved",
            "Features: key benefits",
            "How It Works: product walkthrough",
            "Integrations: compatible platforms",
            "Pricing: transparent tiers",
            "Testimonials: customer results",
        ),
        copy_guidelines=(
            "Explain technical concepts simply. Focus on business outcomes over features. Mention security "
            "and compliance. Offer the free trial prominently."
        ),
        visual_emphasis="Product dashboards, feature demos, integration logos",
        cta_language=("Start Your Free Trial", "Schedule a Demo", "See Pricing"),
        trust_signals=("Customer count", "Uptime", "Security certifications"),
    ),
    "ecommerce": IndustryContext(
        industry="E-commerce Store",
        tone=("engaging", "exciting", "trustworthy", "customer-focused"),
        content_themes=("product quality", "value proposition", "customer reviews", "shopping experience"),
        section_priorities=(
            "Hero: product showcase and value",
            "Featured Products: best sellers",
            "Categories: easy navigation",
            "Customer Reviews: ratings",
            "Shipping & Returns: clear policies",
            "Trust Signals: security badges and guarantees",
        ),
        copy_guidelines=(
            "Highlight product benefits. Use reviews prominently. Address shipping and return concerns. "
            "Make checkout obvious."
        ),
        visual_emphasis="Product photography, lifestyle shots, rating stars",
        cta_language=("Shop Now", "Explore Our Collection", "Claim Your Discount"),
        trust_signals=("Reviews and ratings", "Secure payment badges", "Return policy"),
    ),
    "consulting": IndustryContext(
        industry="Consulting Firm",
        tone=("expert", "professional", "strategic", "trustworthy"),
        content_themes=("industry expertise", "business transformation", "proven methodology", "client success"),
        section_priorities=(
            "Hero: business challenge solved",
            "Services: consulting specializations",
            "Methodology: the approach and process",
            "Case Studies: client success stories",
            "Team: partner credentials",
            "Engagement: how engagements work",
        ),
        copy_guidelines=(
            "Emphasize industry expertise and a clear methodology. Use case studies with specific results. "
            "Include client logos."
        ),
        visual_emphasis="Team photos, meeting environments, strategic diagrams, client logos",
        cta_language=("Schedule a Strategy Session", "Request a Proposal", "Get Your Roadmap"),
        trust_signals=("Years in business", "Client case studies", "Team credentials"),
    ),
    "coach": IndustryContext(
        industry="Business Coach",
        tone=("motivational", "supportive", "experienced", "inspiring"),
        content_themes=("transformation", "expertise", "results", "methodology"),
        section_priorities=(
            "Hero: transformation promise",
            "About: background and qualifications",
            "Programs: coaching packages",
            "Results: client transformations",
            "Methodology: coaching approach",
            "Testimonials: client stories",
        ),
        copy_guidelines=(
            "Share the coach's story. Explain what makes the approach unique. Be specific about outcomes "
            "and address objections."
        ),
        visual_emphasis="Coach portrait, client success photos, credentials",
        cta_language=("Book Your Free Consultation", "Apply for Coaching", "Schedule a Discovery Call"),
        trust_signals=("Years of experience", "Certifications", "Media features"),
    ),
    "nonprofit": IndustryContext(
        industry="Non-Profit Organization",
        tone=("mission-driven", "authentic", "inspiring", "transparent"),
        content_themes=("mission impact", "community help", "donor transparency", "volunteer opportunities"),
        section_priorities=(
            "Hero: mission and impact statement",
            "Our Work: programs and initiatives",
            "Impact: measurable results",
            "Get Involved: volunteer and donate",
            "Transparency: where donations go",
            "News: recent accomplishments",
        ),
        copy_guidelines=(
            "Be authentic and transparent. Tell impact stories with specific numbers. Make donating and "
            "volunteering simple."
        ),
        visual_emphasis="Community impact photos, volunteers in action, impact charts",
        cta_language=("Donate Now", "Volunteer With Us", "Join Our Mission"),
        trust_signals=("501(c)(3) status", "Donation transparency", "Impact metrics"),
    ),
    "contractor": IndustryContext(
        industry="Home Contractor / Construction",
        tone=("professional", "reliable", "skilled", "trustworthy"),
        content_themes=("quality work", "project completion", "before/after transformations", "satisfaction"),
        section_priorities=(
            "Hero: craftsmanship and reliability",
            "Services: trades offered",
            "Portfolio: before/after projects",
            "Process: project timeline",
            "Team: licenses and certifications",
            "Testimonials: customer reviews",
        ),
        copy_guidelines=(
            "Emphasize quality and attention to detail. Mention licenses, warranties and guarantees. Set "
            "timeline expectations."
        ),
        visual_emphasis="Before/after project photos, work in progress, finished installations",
        cta_language=("Get a Free Quote", "Schedule Your Inspection", "See Our Portfolio"),
        trust_signals=("Licenses and certifications", "Insurance and bonding", "Project portfolio"),
    ),
}
DEFAULT_CONTEXT_KEY = "consulting"

# Checked in order; the first industry with a matching keyword wins.
_CONTEXT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("smma", ("smma", "social media marketing", "instagram", "tiktok", "facebook ads", "social growth")),
    ("ai_automation", ("automation", "workflow", "chatbot", "ai tools", "automate", " ai ")),
    ("web_design", ("web design", "web development", "design agency", "ui/ux")),
    ("restaurant", ("restaurant", "cafe", "pizza", "dinner", "cuisine", "chef", "bistro")),
    ("gym", ("gym", "fitness", "personal training", "crossfit", "yoga studio")),
    ("dentist", ("dentist", "dental", "orthodontist", "teeth")),
    ("lawyer", ("lawyer", "law firm", "attorney", "legal")),
    ("realtor", ("realtor", "real estate", "property", "homes", "broker")),
    ("salon", ("salon", "hair", " spa", "beauty", "stylist", "nails", "barber")),
    ("saas", ("saas", "software", "platform", "subscription", " app")),
    ("ecommerce", ("ecommerce", "e-commerce", "store", "shop", "retail", "sell online")),
    ("consulting", ("consulting", "consultant", "advisory", "strategy")),
    ("coach", ("coach", "coaching", "mentor", "courses")),
    ("nonprofit", ("nonprofit", "non-profit", "charity", "foundation", "volunteer")),
    ("contractor", ("contractor", "construction", "roofing", "plumbing", "electrical", "builder", "hvac")),
)

INDUSTRY_COLORS: dict[str, dict[str, str]] = {
    "finance": {"primary": "#1E3A8A", "secondary": "#F59E0B", "accent": "#3B82F6"},
    "food": {"primary": "#EF4444", "secondary": "#F97316", "accent": "#FCD34D"},
    "eco": {"primary": "#16A34A", "secondary": "#84CC16", "accent": "#A16207"},
    "tech": {"primary": "#3B82F6", "secondary": "#8B5CF6", "accent": "#06B6D4"},
    "health": {"primary": "#14B8A6", "secondary": "#F472B6", "accent": "#10B981"},
    "creative": {"primary": "#8B5CF6", "secondary": "#EC4899", "accent": "#F59E0B"},
    "luxury": {"primary": "#000000", "secondary": "#F59E0B", "accent": "#71717A"},
    "default": {"primary": "#4F46E5", "secondary": "#1F2937", "accent": "#10B981"},
}

_COLOR_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("finance", ("financ", "bank", "invest")),
    ("food", ("food", "restaurant", "café", "cafe", "coffee")),
    ("eco", ("eco", "green", "sustain", "environment")),
    ("tech", ("tech", "software", "app", "digital")),
    ("health", ("health", "fitness", "wellness", "medical")),
    ("creative", ("creative", "agency", "design", "market")),
    ("luxury", ("luxury", "premium", "high-end")),
)

WEBSITE_STYLES: dict[str, WebsiteStyle] = {
    "restaurant": WebsiteStyle(
        style="WARM & FRIENDLY",
        sections=("Hero with food imagery", "Menu highlights", "About the chef", "Location & hours", "Reservations CTA"),
        color_scheme="Warm tones: burgundy, cream, terracotta with gold accents",
        typography="Elegant serif headings (Playfair Display), clean sans body",
        imagery="Food photography, cozy interior shots, chef in action",
        cta_style='rounded-full, warm colors, "Reserve a Table" / "Order Now"',
    ),
    "bar": WebsiteStyle(
        style="DARK MODE ELEGANT",
        sections=("Full-screen hero", "Signature cocktails", "Events lineup", "VIP booking", "Location & hours"),
        color_scheme="Dark backgrounds with neon purple, pink and cyan accents",
        typography="Bold display font (Bebas Neue), modern sans body",
        imagery="Moody lighting, cocktail close-ups, crowd atmosphere",
        cta_style='Neon glow, "Book a Table" / "Join the VIP List"',
    ),
    "gym": WebsiteStyle(
        style="BOLD & VIBRANT",
        sections=("Hero with action shot", "Class schedule", "Membership tiers", "Trainers", "Free trial CTA"),
        color_scheme="High energy: black, red, orange, electric blue",
        typography="Bold condensed font (Anton), uppercase headings",
        imagery="Action shots, equipment, transformations",
        cta_style='Sharp corners, bold colors, "Start Your Free Trial"',
    ),
    "dental": WebsiteStyle(
        style="MINIMALIST CLEAN",
        sections=("Welcoming hero", "Services overview", "Meet the team", "Patient testimonials", "Appointment booking"),
        color_scheme="White, light blue and teal with subtle gold",
        typography="Clean sans-serif (Poppins)",
        imagery="Bright office, smiling patients, staff portraits",
        cta_style='Soft rounded, calming colors, "Book Appointment"',
    ),
    "legal": WebsiteStyle(
        style="CORPORATE PROFESSIONAL",
        sections=("Authority hero", "Practice areas", "Attorney profiles", "Case results", "Free consultation"),
        color_scheme="Navy blue, gold, dark gray, white",
        typography="Serif headings (Libre Baskerville), clean sans body",
        imagery="Professional portraits, office exterior",
        cta_style='Understated, "Free Consultation" / "Contact Us"',
    ),
    "realestate": WebsiteStyle(
        style="MINIMALIST CLEAN",
        sections=("Property showcase hero", "Featured listings", "Agent profile", "Market stats", "Testimonials"),
        color_scheme="Navy, gold, white, subtle gray",
        typography="Modern serif (Cormorant) with elegant sans (Montserrat)",
        imagery="Property photos, lifestyle shots, neighborhood views",
        cta_style='Elegant, "View Listings" / "Get Valuation"',
    ),
    "automotive": WebsiteStyle(
        style="BOLD & VIBRANT",
        sections=("Hero with car imagery", "Services offered", "Special offers", "Before/after gallery", "Booking"),
        color_scheme="Black, red, silver with chrome accents",
        typography="Bold display (Oswald), industrial feel",
        imagery="Car photos, workshop, technicians",
        cta_style='Bold, angular, "Book Service" / "Get Quote"',
    ),
    "salon": WebsiteStyle(
        style="CREATIVE & ARTISTIC",
        sections=("Hero with portfolio", "Services & pricing", "Stylist profiles", "Gallery", "Book online"),
        color_scheme="Pink, rose gold, black, white, pastels",
        typography="Fashion-forward (Josefin Sans) with script accents",
        imagery="Hair and makeup shots, stylish interior, happy clients",
        cta_style='Elegant rounded, "Book Now" / "See Our Work"',
    ),
    "construction": WebsiteStyle(
        style="CORPORATE PROFESSIONAL",
        sections=("Hero with project", "Services", "Project gallery", "Process timeline", "Free estimate"),
        color_scheme="Orange, black, gray with yellow accents",
        typography="Bold industrial (Russo One), readable body",
        imagery="Project photos, team at work, completed buildings",
        cta_style='Strong, "Get Free Estimate" / "View Projects"',
    ),
    "cleaning": WebsiteStyle(
        style="WARM & FRIENDLY",
        sections=("Fresh clean hero", "Services", "Pricing packages", "Trust indicators", "Book cleaning"),
        color_scheme="Light blue, white, green with yellow accents",
        typography="Friendly sans-serif (Quicksand)",
        imagery="Sparkling spaces, happy team, before/after",
        cta_style='Rounded, "Get Free Quote" / "Book Cleaning"',
    ),
    "tech": WebsiteStyle(
        style="MINIMALIST CLEAN",
        sections=("Product showcase hero", "Features grid", "How it works", "Pricing", "Start free trial"),
        color_scheme="Deep blue, purple, cyan, white with gradients",
        typography="Clean modern (Inter) with a code font accent",
        imagery="Product screenshots, abstract tech patterns",
        cta_style='Modern rounded gradient, "Start Free Trial" / "Get Demo"',
    ),
    "consulting": WebsiteStyle(
        style="CORPORATE PROFESSIONAL",
        sections=("Authority hero", "Services", "Case studies", "Team", "Contact"),
        color_scheme="Navy, gray, white with gold or green accents",
        typography="Professional serif and sans pairing",
        imagery="Headshots, office scenes, data visualizations",
        cta_style='Professional, "Schedule Consultation"',
    ),
    "retail": WebsiteStyle(
        style="MINIMALIST CLEAN",
        sections=("Product hero", "Featured products", "Categories", "Reviews", "Shop now"),
        color_scheme="Clean white with product-driven accent colors",
        typography="Clean and modern, product-focused",
        imagery="Product shots, lifestyle images",
        cta_style='"Shop Now" / "View Collection"',
    ),
    "default": WebsiteStyle(
        style="MINIMALIST CLEAN",
        sections=("Hero", "Services/features", "About", "Testimonials", "Contact"),
        color_scheme="Blue, white, gray with one accent color",
        typography="Clean and readable",
        imagery="Professional and relevant to the business",
        cta_style="Clear and action-oriented",
    ),
}

# Substring patterns over the alphanumeric-only industry name, checked in order.
_STYLE_PATTERNS: tuple[tuple[str, str], ...] = (
    ("restaurant", "restaurant"), ("food", "restaurant"), ("cafe", "restaurant"), ("coffee", "restaurant"),
    ("catering", "restaurant"), ("bakery", "restaurant"),
    ("barber", "salon"),
    ("nightclub", "bar"), ("lounge", "bar"), ("pub", "bar"), ("bar", "bar"),
    ("gym", "gym"), ("fitness", "gym"), ("crossfit", "gym"), ("yoga", "gym"), ("pilates", "gym"),
    ("dental", "dental"), ("dentist", "dental"), ("medical", "dental"), ("clinic", "dental"),
    ("chiropractor", "dental"), ("doctor", "dental"),
    ("law", "legal"), ("legal", "legal"), ("attorney", "legal"),
    ("realestate", "realestate"), ("realtor", "realestate"), ("property", "realestate"),
    ("automotive", "automotive"), ("auto", "automotive"), ("mechanic", "automotive"), ("carwash", "automotive"),
    ("detailing", "automotive"),
    ("salon", "salon"), ("hair", "salon"), ("beauty", "salon"), ("spa", "salon"), ("nails", "salon"),
    ("construction", "construction"), ("contractor", "construction"), ("roofing", "construction"),
    ("plumbing", "construction"), ("electrical", "construction"), ("hvac", "construction"),
    ("remodeling", "construction"),
    ("cleaning", "cleaning"), ("janitorial", "cleaning"), ("maid", "cleaning"), ("housekeeping", "cleaning"),
    ("tech", "tech"), ("software", "tech"), ("saas", "tech"), ("startup", "tech"), ("app", "tech"),
    ("consult", "consulting"), ("advisory", "consulting"), ("coaching", "consulting"),
    ("retail", "retail"), ("shop", "retail"), ("store", "retail"), ("ecommerce", "retail"),
    ("boutique", "retail"),
)

# Website style for each description-detected industry.
_CONTEXT_STYLES = {
    "ai_automation": "tech",
    "restaurant": "restaurant",
    "gym": "gym",
    "dentist": "dental",
    "lawyer": "legal",
    "realtor": "realestate",
    "salon": "salon",
    "saas": "tech",
    "ecommerce": "retail",
    "consulting": "consulting",
    "coach": "consulting",
    "contractor": "construction",
}

_ARCHITECT_BASE = (
    "You are an award-winning web designer who builds conversion-focused landing pages for local "
    "businesses. You write clean semantic HTML with Tailwind CSS and always return valid JSON. "
    "Every site must feel distinct: commit to one design style and carry it through every section."
)
_ARCHITECT_INDUSTRY = (
    "\n\nThis business is a {industry}. Design in the {style} style. "
    "Palette: {color_scheme}. Typography: {typography}. Imagery: {imagery}. "
    "Calls to action: {cta_style}. Order the page as: {sections}."
)


def _matches(text: str, words: tuple[str, ...]) -> bool:
    return any(word in text for word in words)


def detect_industry_key(description: Optional[str]) -> str:
    text = f" {(description or '').lower()} "
    for key, words in _CONTEXT_KEYWORDS:
        if _matches(text, words):
            return key
    return DEFAULT_CONTEXT_KEY


def get_industry_context(description: Optional[str]) -> IndustryContext:
    return INDUSTRY_CONTEXTS[detect_industry_key(description)]


def get_industry_colors(description: Optional[str]) -> dict[str, str]:
    text = (description or "").lower()
    for key, words in _COLOR_KEYWORDS:
        if _matches(text, words):
            return dict(INDUSTRY_COLORS[key])
    return dict(INDUSTRY_COLORS["default"])


def get_website_style(industry: Optional[str]) -> WebsiteStyle:
    normalized = re.sub(r"[^a-z0-9]", "", (industry or "").lower())
    for pattern, key in _STYLE_PATTERNS:
        if pattern in normalized:
            return WEBSITE_STYLES[key]
    return WEBSITE_STYLES["default"]


def analyze_business_personality(description: Optional[str]) -> BusinessPersonality:
    """Keyword read of tone, sophistication, audience and price point; deterministic for a given text."""
    text = (description or "").lower()
    return BusinessPersonality(
        tone=_detect_tone(text),
        sophistication=_detect_sophistication(text),
        target_audience=_detect_audience(text),
        price_position=_detect_price_position(text),
    )


def _detect_tone(text: str) -> str:
    if _matches(text, ("luxury", "high-end", "exclusive", "boutique", "premium", "curated", "designer", "elite")):
        return "premium"
    if _matches(text, ("bold", "creative", "cutting-edge", "innovative", "disruptive", "young", "trendy")):
        return "edgy"
    if _matches(text, ("fun", "friendly", "community", "local", "casual", "approachable", "welcoming", "warm")):
        return "friendly"
    return "professional"


def _detect_sophistication(text: str) -> str:
    if _matches(
        text,
        (
            "machine learning",
            "artificial intelligence",
            "blockchain",
            "quantum",
            "cloud infrastructure",
            "api",
            "enterprise",
            "algorithm",
            "neural",
            "advanced",
            "sophisticated",
        ),
    ):
        return "advanced"
    if _matches(
        text,
        ("platform", "software", "integration", "automation", "analytics", "dashboard", "system", "tool", "saas", "strategy"),
    ):
        return "moderate"
    return "simple"


def _detect_audience(text: str) -> str:
    b2b = _matches(
        text, ("b2b", "business to business", "enterprise", "corporate", "companies", "businesses", "organizational")
    )
    b2c = _matches(
        text, ("b2c", "business to consumer", "consumer", "customers", "retail", "personal", "individual")
    )
    if b2b and b2c:
        return "mixed"
    if b2b:
        return "b2b"
    if b2c:
        return "b2c"
    if _matches(text, ("restaurant", "gym", "salon", "shop", "store", "service")):
        return "b2c"
    if _matches(text, ("consulting", "agency", "platform", "software")):
        return "b2b"
    return "mixed"


def _detect_price_position(text: str) -> str:
    if _matches(text, ("premium", "luxury", "high-end", "exclusive", "upmarket", "5-star", "michelin")):
        return "premium"
    if _matches(text, ("affordable", "budget", "cheap", "discount", "value", "low-cost", "economical")):
        return "budget"
    return "mid-market"


def get_design_adaptations(personality: BusinessPersonality) -> DesignAdaptations:
    color_scheme = {
        "premium": "Gold, navy, and white (luxury aesthetic)",
        "edgy": "Bold black, bright accent colors, high contrast",
        "friendly": "Warm earth tones, soft pastels, approachable colors",
    }.get(personality.tone, "Modern blue and gray (professional default)")
    typography = {
        "advanced": "Modern sans-serif (Inter, Poppins), geometric precision",
        "simple": "Friendly, readable sans-serif, larger font sizes",
    }.get(personality.sophistication, "Clean sans-serif for body, modern serif for headers")
    spacing = {
        "premium": "Generous whitespace, luxurious breathing room (2-3rem gaps)",
        "budget": "Compact spacing, efficient layout (1rem gaps)",
    }.get(personality.price_position, "Balanced spacing (1.5rem gaps)")
    imagery = {
        "premium": "High-end professional photography, aspirational lifestyle",
        "edgy": "Bold, unconventional photography, graphic illustrations",
        "friendly": "Warm, people-focused photography, approachable visuals",
    }.get(personality.tone, "Professional stock photos or lifestyle imagery")
    return DesignAdaptations(color_scheme=color_scheme, typography=typography, spacing=spacing, imagery=imagery)


def style_for_description(description: Optional[str]) -> WebsiteStyle:
    return WEBSITE_STYLES[_CONTEXT_STYLES.get(detect_industry_key(description), "default")]


def architect_prompt(industry: Optional[str], style: Optional[WebsiteStyle] = None) -> str:
    """System prompt for site generation, specialised to the industry's style when one is recognised."""
    style = style or get_website_style(industry)
    if not industry or style is WEBSITE_STYLES["default"]:
        return _ARCHITECT_BASE
    return _ARCHITECT_BASE + _ARCHITECT_INDUSTRY.format(
        industry=industry,
        style=style.style,
        color_scheme=style.color_scheme,
        typography=style.typography,
        imagery=style.imagery,
        cta_style=style.cta_style,
        sections=", ".join(style.sections),
    )


def industry_brief_lines(description: Optional[str]) -> list[str]:
    """Prompt lines covering industry context, business personality and design adaptations."""
    context = get_industry_context(description)
    personality = analyze_business_personality(description)
    adaptations = get_design_adaptations(personality)
    lines = [
        "===== INDUSTRY CONTEXT =====",
        f"Industry: {context.industry}",
        f"Target Tone: {', '.join(context.tone)}",
        f"Key Content Themes: {', '.join(context.content_themes)}",
        f"Copywriting Guidelines: {context.copy_guidelines}",
        f"Visual Emphasis: {context.visual_emphasis}",
        "Recommended CTAs:",
    ]
    lines += [f'{index}. "{cta}"' for index, cta in enumerate(context.cta_language, start=1)]
    lines.append(f"Trust Signals to Include: {', '.join(context.trust_signals)}")
    lines.append("Section Priorities:")
    lines += [f"{index}. {section}" for index, section in enumerate(context.section_priorities, start=1)]
    lines += [
        "",
        "===== BUSINESS PERSONALITY =====",
        f"Tone: {personality.tone}",
        f"Sophistication: {personality.sophistication}",
        f"Target Audience: {personality.target_audience}",
        f"Price Position: {personality.price_position}",
        f"Color Scheme: {adaptations.color_scheme}",
        f"Typography: {adaptations.typography}",
        f"Spacing: {adaptations.spacing}",
        f"Imagery: {adaptations.imagery}",
    ]
    return lines
