"""Recipients of the emails Jenkins sends about a deploy-triggered build."""

from email.utils import parseaddr

from jenkins_common.models import Deploy


def _address(raw: str) -> str | None:
    _, address = parseaddr(raw or "")
    if "@" not in address:
        return None
    return address


def notify_emails(deploy: Deploy, domain: str | None = None) -> str:
    """
    Comma separated, de-duplicated recipient addresses for a deploy.

    The deployer and buddy are always included; commit authors only when the
    stage asks for it. domain (e.g. "@example.com") keeps only addresses in
    that domain, compared case-insensitively.
    """
    candidates = [deploy.user.email]
    if deploy.buddy:
        candidates.append(deploy.buddy.email)
    if deploy.stage.jenkins_email_committers:
        candidates.extend(commit.author_email for commit in deploy.commits)

    addresses = []
    for raw in candidates:
        address = _address(raw)
        if address is None:
            continue
        if domain and "@" + address.rsplit("@", 1)[1].lower() != domain.lower():
            continue
        if address not in addresses:
            addresses.append(address)
    return ",".join(addresses)
