"""Text helpers used when printing the roster."""


def truncate(text: str, limit: int = 50, trail: str = "...") -> str:
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit].rstrip() + trail


def mask_email(mail: str) -> str:
    """Hide the local part of an address, keeping its first character."""
    if "@" not in mail:
        return mail
    local, domain = mail.split("@", 1)
    if not local:
        return mail
    return f"{local[0]}***@{domain}"


def mask_secret(secret: str) -> str:
    return "*" * len(secret)
