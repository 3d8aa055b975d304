"""
Pure title heuristics used by guide and catalog sources before any LLM call.
"""
import re
from typing import Dict, Iterable, List, Sequence

QUALITY_SCORE_THRESHOLD = 1

HIGH_VALUE_KEYWORDS = (
    "architecture", "design pattern", "scalability", "microservices",
    "distributed systems", "load balanc", "database", "caching",
    "message queue", "api gateway", "consistency", "availability",
    "partitioning", "replication", "sharding", "cap theorem",
    "horizontal scaling", "vertical scaling", "rate limiting",
    "circuit breaker", "cdn", "reverse proxy", "idempotency",
)

MEDIUM_VALUE_KEYWORDS = (
    "rest api", "graphql", "grpc", "websocket", "kafka", "rabbitmq",
    "redis", "mongodb", "postgresql", "cassandra", "elasticsearch",
    "kubernetes", "docker", "nginx", "http", "tcp", "dns",
    "oauth", "jwt", "ssl/tls", "aws", "azure", "gcp",
)

GENERIC_TERMS = ("introduction", "basics", "overview", "beginner", "tutorial")

KNOWN_COMPANIES = (
    "netflix", "uber", "airbnb", "twitter", "facebook", "amazon", "google", "stripe",
)

CORE_TECHNICAL_KEYWORDS = (
    "api", "system", "design", "architecture", "database", "server",
    "network", "protocol", "cloud", "scale", "cache", "load",
    "security", "distributed", "microservice", "queue", "storage",
    "http", "tcp", "dns", "kubernetes", "docker", "monitoring",
    "deployment", "authentication", "authorization", "encryption",
)

_COMPARISON = re.compile(r"\svs\.?\s|\sversus\s", re.IGNORECASE)
_HOW_TO = re.compile(r"^how\s|how\sto\s", re.IGNORECASE)

_LOW_QUALITY_TITLES = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^image$", r"^diagram$", r"^figure\s*\d+", r"^chart", r"^table",
        r"^\d+\.\d+$", r"^click here", r"^learn more", r"^read more",
        r"^see more", r"^subscribe", r"^follow", r"^star", r"^fork",
        r"^bookmark", r"^newsletter", r"^license", r"^copyright",
        r"^back to", r"^table of contents", r"^toc$",
    )
]

# topic -> keywords, matched against guide titles
GUIDE_TOPICS: Dict[str, Sequence[str]] = {
    "Performance": ("performance", "latency", "throughput", "optimization", "speed"),
    "Scalability": ("scalability", "scale", "scaling", "horizontal", "vertical"),
    "Caching": ("cache", "caching", "redis", "memcached", "cdn"),
    "Database": ("database", "sql", "nosql", "db", "rdbms", "postgres", "mysql",
                 "mongodb", "cassandra", "dynamodb"),
    "Load Balancing": ("load balanc", "balancer", "nginx", "haproxy"),
    "CDN": ("cdn", "content delivery"),
    "API": ("api", "rest", "graphql", "grpc", "webhook", "websocket", "gateway"),
    "Security": ("security", "https", "encryption", "authentication", "ssl", "tls", "oauth"),
    "Architecture": ("architecture", "design pattern", "microservice", "monolith", "service", "mvc"),
    "DevOps": ("devops", "ci/cd", "docker", "kubernetes", "deployment", "container", "sre",
               "platform engineering"),
    "Networking": ("network", "tcp", "udp", "dns", "http", "protocol", "proxy", "ipv4", "ipv6"),
    "Distributed Systems": ("distributed", "cap theorem", "consistency", "partition",
                            "availability", "consensus"),
    "Message Queue": ("queue", "message", "async", "kafka", "rabbitmq", "pubsub"),
    "Monitoring": ("monitor", "observability", "logging", "metrics", "tracing"),
    "Storage": ("storage", "blob", "s3", "object storage", "file system", "b-tree", "lsm"),
    "Git": ("git", "version control", "merge", "rebase", "branch", "monorepo", "microrepo"),
    "Payment": ("payment", "visa", "credit card", "fintech", "wallet", "upi", "mastercard"),
    "Cloud": ("aws", "azure", "gcp", "cloud"),
}

# topic -> keywords, matched against video and blog title + description
MEDIA_TOPICS: Dict[str, Sequence[str]] = {
    "Microservices": ("microservices",),
    "Kubernetes": ("kubernetes",),
    "Docker": ("docker",),
    "Distributed Systems": ("distributed",),
    "Scalability": ("scalability",),
    "Caching": ("caching",),
    "Databases": ("database",),
    "Load Balancing": ("load balancing",),
    "API Design": ("api design", "api"),
    "System Design": ("system design",),
    "Architecture": ("architecture",),
    "Redis": ("redis",),
    "Kafka": ("kafka",),
    "NoSQL": ("nosql",),
    "SQL": ("sql",),
    "REST API": ("rest api",),
    "GraphQL": ("graphql",),
    "Message Queues": ("messaging",),
    "CDN": ("cdn",),
    "Monitoring": ("monitoring",),
    "Performance": ("performance",),
    "Reliability": ("reliability",),
    "Observability": ("observability",),
    "Infrastructure": ("infrastructure",),
}

DEFAULT_TOPIC = "System Design"
MAX_TOPICS = 5


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle in text for needle in needles)


def calculate_quality_score(title: str) -> int:
    """
    Deterministic pre-filter score for a title. Higher is better; items below
    ``QUALITY_SCORE_THRESHOLD`` are discarded by the sources that use it.
    """
    score = 0
    lower = title.lower()

    if _contains_any(lower, HIGH_VALUE_KEYWORDS):
        score += 3
    if _contains_any(lower, MEDIUM_VALUE_KEYWORDS):
        score += 2
    if _COMPARISON.search(title):
        score += 2
    if _HOW_TO.search(title):
        score += 1
    if len(title) < 15:
        score -= 2
    if len(title) > 80:
        score -= 1
    if _contains_any(lower, GENERIC_TERMS):
        score -= 3
    if _contains_any(lower, KNOWN_COMPANIES):
        score += 1

    return score


def is_high_quality_title(title: str) -> bool:
    """Reject link texts that are navigation chrome rather than content."""
    lower = title.lower()

    if not _contains_any(lower, CORE_TECHNICAL_KEYWORDS):
        return False
    if any(pattern.search(title) for pattern in _LOW_QUALITY_TITLES):
        return False
    if title.strip().isdigit() or len(title.split()) < 2:
        return False

    return True


def extract_topics(
    text: str,
    topic_map: Dict[str, Sequence[str]] = MEDIA_TOPICS,
    limit: int = MAX_TOPICS,
) -> List[str]:
    lower = text.lower()
    topics = [
        topic for topic, keywords in topic_map.items()
        if _contains_any(lower, keywords)
    ]
    return topics[:limit] or [DEFAULT_TOPIC]
