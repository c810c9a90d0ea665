# module clinic.utils.check_env
# Usage: python -m clinic.utils.check_env  (code de sortie 1 si des variables requises manquent)
import sys

from clinic import config

def format_report(report) -> str:
    lines = [f"Environnement: {config.APP_ENV} (.env: {config.ENV_PATH})", ""]
    lines.append("Variables requises:")
    if not report["missing"] and not report["placeholders"]:
        lines.append("  OK")
    lines += [f"  MANQUANTE  {name}" for name in report["missing"]]
    lines += [f"  EXEMPLE    {name} (valeur à remplacer)" for name in report["placeholders"]]
    lines.append("")
    lines.append("SMTP (formulaire de contact):")
    lines += [f"  INCOMPLET  {name}" for name in report["mail"]] or ["  OK"]
    if report["warnings"]:
        lines.append("")
        lines.append("Sécurité:")
        lines += [f"  ATTENTION  {w}" for w in report["warnings"]]
    return "\n".join(lines)

if __name__ == "__main__":
    result = config.validate_environment()
    print(format_report(result))
    sys.exit(1 if result["missing"] else 0)
