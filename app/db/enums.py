from enum import Enum


class ProjectModeEnum(str, Enum):
    agency = "agency"
    commerce = "commerce"
    playground = "playground"


class ProjectStatusEnum(str, Enum):
    active = "active"
    archived = "archived"


class ArtifactTypeEnum(str, Enum):
    website_code = "website_code"
    identity = "identity"
    market_research = "market_research"
    business_plan = "business_plan"
    leads = "leads"
    outreach = "outreach"
    ads = "ads"
    first_week_plan = "first_week_plan"
    long_term_plan = "long_term_plan"
    lead_website = "lead_website"
    crm = "crm"
    contracts = "contracts"
    client_work = "client_work"
    administration = "administration"
    crawled_site = "crawled_site"
    templates = "templates"


class MessageRoleEnum(str, Enum):
    user = "user"
    assistant = "assistant"
    system = "system"


class LeadStatusEnum(str, Enum):
    new = "new"
    contacted = "contacted"
    responded = "responded"
    converted = "converted"
    rejected = "rejected"
    closed = "closed"
    lost = "lost"


class LeadPriorityEnum(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ClientStatusEnum(str, Enum):
    prospect = "prospect"
    active = "active"
    paused = "paused"
    churned = "churned"


class ClientActivityTypeEnum(str, Enum):
    note = "note"
    call = "call"
    email = "email"
    meeting = "meeting"
    payment = "payment"
    status_change = "status_change"
    task = "task"


class CreditTransactionTypeEnum(str, Enum):
    free_tier = "free_tier"
    purchase = "purchase"
    deduction = "deduction"
    refund = "refund"
    bonus = "bonus"


class PublishSourceTypeEnum(str, Enum):
    project = "project"
    lead = "lead"


class PublishStatusEnum(str, Enum):
    deploying = "deploying"
    published = "published"
    failed = "failed"


class PublishAccessLevelEnum(str, Enum):
    public = "public"
    password = "password"
    private = "private"
