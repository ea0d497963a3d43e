"""Componentes de UI para CLI (Rich).

Renderiza el `Host` terminal como reporte legible, la tabla de información
del servicio y las líneas de progreso durante el polling. Las etiquetas
existen en inglés y español (`Language`).
"""

from __future__ import annotations

from datetime import datetime, timezone

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from core.domain.language import Language
from core.domain.models import (
    Cert,
    Endpoint,
    EndpointDetails,
    EndpointProgress,
    Host,
    Protocol,
    ServiceInfo,
    Suites,
)

_STRONG_SUITES_SHOWN = 5
_ALT_NAMES_SHOWN = 5
_EXPIRY_WARNING_DAYS = 30

_LABELS: dict[Language, dict[str, str]] = {
    Language.ENGLISH: {
        "title": "TLS ASSESSMENT REPORT - SSL Labs",
        "domain": "Domain",
        "port": "Port",
        "protocol": "Protocol",
        "tested_at": "Assessment date",
        "engine": "SSL Labs engine",
        "criteria": "Grading criteria",
        "endpoint": "ENDPOINT #{index}",
        "ip": "IP",
        "server_name": "Server name",
        "grade": "Grade",
        "grade_trust": "Grade (trust ignored)",
        "warnings": "This endpoint has warnings that may affect the grade",
        "exceptional": "Exceptional configuration detected",
        "duration": "Assessment duration",
        "status": "Status",
        "detail": "Detail",
        "protocols": "Supported Protocols",
        "no_protocols": "No protocols found.",
        "insecure": "INSECURE",
        "insecure_obsolete": "INSECURE (obsolete)",
        "deprecated": "DEPRECATED",
        "ok": "OK",
        "suites": "Cipher Suites",
        "no_suites": "No cipher suites found.",
        "server_preference": "The server actively selects cipher suites.",
        "total_suites": "Total suites",
        "weak_suites": "Weak Ciphers Detected:",
        "strong_suites": "Strong Ciphers (showing up to {limit}):",
        "strength": "strength: {bits} bits",
        "and_more": "... and {count} more",
        "vulns": "Known Vulnerabilities",
        "severity": "Severity",
        "no_vulns": "No known vulnerabilities detected",
        "features": "Security Features",
        "fs": "Forward Secrecy",
        "fs_none": "Not supported",
        "fs_full": "Full (all clients)",
        "fs_partial": "Partial (modern clients)",
        "fs_limited": "Limited",
        "hsts": "HSTS",
        "hsts_off": "Not configured",
        "hsts_on": "Enabled",
        "hsts_preload": "(with preload)",
        "ocsp": "OCSP Stapling",
        "yes": "Yes",
        "no": "No",
        "scsv": "TLS Fallback SCSV",
        "supported": "Supported",
        "cert": "Certificate Information",
        "subject": "Subject",
        "issuer": "Issuer",
        "sig_alg": "Signature algorithm",
        "valid_from": "Valid from",
        "valid_until": "Valid until",
        "expired": "CERTIFICATE EXPIRED",
        "expires_in": "The certificate expires in {days} days",
        "alt_names": "Alternative names",
        "cert_issues": "Certificate issues detected:",
        "critical": "CRITICAL",
        "high": "HIGH",
        "medium": "MEDIUM",
        "rc4": "Supports RC4",
        "progress": "Progress",
        "service_info": "SSL Labs Service Information",
        "engine_version": "Engine version",
        "criteria_version": "Criteria version",
        "max_assessments": "Max concurrent assessments",
        "current_assessments": "Current assessments",
        "cool_off": "Cool-off between assessments",
        "messages": "Service messages",
        "field": "Field",
        "value": "Value",
        "subtitle": "TLS configuration assessment via SSL Labs",
    },
    Language.SPANISH: {
        "title": "REPORTE DE ANÁLISIS TLS - SSL Labs",
        "domain": "Dominio",
        "port": "Puerto",
        "protocol": "Protocolo",
        "tested_at": "Fecha del análisis",
        "engine": "Motor SSL Labs",
        "criteria": "Criterios de evaluación",
        "endpoint": "ENDPOINT #{index}",
        "ip": "IP",
        "server_name": "Nombre del servidor",
        "grade": "Calificación",
        "grade_trust": "Calificación (ignorando confianza)",
        "warnings": "Este endpoint tiene advertencias que pueden afectar la calificación",
        "exceptional": "Configuración excepcional detectada",
        "duration": "Duración del análisis",
        "status": "Estado",
        "detail": "Detalle",
        "protocols": "Protocolos Soportados",
        "no_protocols": "No se encontraron protocolos.",
        "insecure": "INSEGURO",
        "insecure_obsolete": "INSEGURO (obsoleto)",
        "deprecated": "DEPRECADO",
        "ok": "OK",
        "suites": "Cipher Suites",
        "no_suites": "No se encontraron cipher suites.",
        "server_preference": "El servidor selecciona activamente las cipher suites.",
        "total_suites": "Total de suites",
        "weak_suites": "Cifrados Débiles Detectados:",
        "strong_suites": "Cifrados Fuertes (mostrando hasta {limit}):",
        "strength": "fuerza: {bits} bits",
        "and_more": "... y {count} más",
        "vulns": "Vulnerabilidades Conocidas",
        "severity": "Severidad",
        "no_vulns": "No se detectaron vulnerabilidades conocidas",
        "features": "Características de Seguridad",
        "fs": "Forward Secrecy",
        "fs_none": "No soportado",
        "fs_full": "Completo (todos los clientes)",
        "fs_partial": "Parcial (clientes modernos)",
        "fs_limited": "Limitado",
        "hsts": "HSTS",
        "hsts_off": "No configurado",
        "hsts_on": "Habilitado",
        "hsts_preload": "(con preload)",
        "ocsp": "OCSP Stapling",
        "yes": "Sí",
        "no": "No",
        "scsv": "TLS Fallback SCSV",
        "supported": "Soportado",
        "cert": "Información del Certificado",
        "subject": "Sujeto",
        "issuer": "Emisor",
        "sig_alg": "Algoritmo de firma",
        "valid_from": "Válido desde",
        "valid_until": "Válido hasta",
        "expired": "CERTIFICADO EXPIRADO",
        "expires_in": "El certificado expira en {days} días",
        "alt_names": "Nombres alternativos",
        "cert_issues": "Problemas detectados en el certificado:",
        "critical": "CRÍTICA",
        "high": "ALTA",
        "medium": "MEDIA",
        "rc4": "Soporta RC4",
        "progress": "Progreso",
        "service_info": "Información del Servicio SSL Labs",
        "engine_version": "Versión del motor",
        "criteria_version": "Versión de criterios",
        "max_assessments": "Análisis máximos concurrentes",
        "current_assessments": "Análisis actuales",
        "cool_off": "Período de espera entre análisis",
        "messages": "Mensajes del servicio",
        "field": "Campo",
        "value": "Valor",
        "subtitle": "Análisis de configuración TLS vía SSL Labs",
    },
}

_CERT_ISSUES: dict[Language, tuple[tuple[int, str], ...]] = {
    Language.ENGLISH: (
        (1, "No chain of trust"),
        (2, "Certificate not yet valid"),
        (4, "Certificate expired"),
        (8, "Hostname mismatch"),
        (16, "Certificate revoked"),
        (32, "Bad common name"),
        (64, "Self-signed certificate"),
        (128, "Blacklisted certificate"),
        (256, "Insecure signature"),
    ),
    Language.SPANISH: (
        (1, "Sin cadena de confianza"),
        (2, "Certificado aún no válido"),
        (4, "Certificado expirado"),
        (8, "Nombre de host no coincide"),
        (16, "Certificado revocado"),
        (32, "Common name incorrecto"),
        (64, "Certificado autofirmado"),
        (128, "Certificado en lista negra"),
        (256, "Firma insegura"),
    ),
}


def _t(language: Language, key: str, **kwargs: object) -> str:
    text = _LABELS[language][key]
    return text.format(**kwargs) if kwargs else text


def _from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone()


def grade_style(grade: str) -> str:
    if grade.startswith("A"):
        return "green"
    if grade.startswith("B"):
        return "yellow"
    return "red"


def protocol_status(protocol: Protocol, language: Language) -> Text:
    """Clasifica un protocolo: q=0 o SSL inseguros, TLS 1.0/1.1 deprecados."""

    if protocol.q is not None and protocol.q == 0:
        return Text(_t(language, "insecure"), style="red")
    if protocol.name == "SSL":
        return Text(_t(language, "insecure_obsolete"), style="red")
    if protocol.name == "TLS" and protocol.version in ("1.0", "1.1"):
        return Text(_t(language, "deprecated"), style="yellow")
    return Text(_t(language, "ok"), style="green")


def decode_cert_issues(issues: int, language: Language = Language.ENGLISH) -> list[str]:
    return [label for bit, label in _CERT_ISSUES[language] if issues & bit]


def print_banner(console: Console, language: Language = Language.ENGLISH) -> None:
    title = Text("tls-assess", style="bold cyan")
    subtitle = Text(_t(language, "subtitle"), style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_service_info_table(info: ServiceInfo, language: Language = Language.ENGLISH) -> Table:
    table = Table(title=_t(language, "service_info"))
    table.add_column(_t(language, "field"), style="cyan", no_wrap=True)
    table.add_column(_t(language, "value"), style="white")
    table.add_row(_t(language, "engine_version"), info.version)
    table.add_row(_t(language, "criteria_version"), info.criteria_version)
    table.add_row(_t(language, "max_assessments"), str(info.max_assessments))
    table.add_row(_t(language, "current_assessments"), str(info.current_assessments))
    table.add_row(_t(language, "cool_off"), f"{info.new_assessment_cool_off}ms")
    if info.messages:
        table.add_row(_t(language, "messages"), "\n".join(f"• {m}" for m in info.messages))
    return table


class ConsoleProgressReporter:
    """`ProgressReporter` que imprime una línea por endpoint."""

    def __init__(self, console: Console, language: Language = Language.ENGLISH) -> None:
        self._console = console
        self._language = language

    def report(self, progress: EndpointProgress) -> None:
        line = Text("  ")
        line.append(f"[{progress.ip_address}]", style="cyan")
        line.append(f" {_t(self._language, 'progress')}: {progress.progress}%")
        if progress.status_details_message:
            line.append(f" - {progress.status_details_message}", style="dim")
        self._console.print(line)


class ReportRenderer:
    """Reporte completo de un `Host` terminal."""

    def __init__(
        self,
        console: Console,
        language: Language = Language.ENGLISH,
        *,
        now: datetime | None = None,
    ) -> None:
        self._console = console
        self._language = language
        self._now = now

    def _label(self, key: str, **kwargs: object) -> str:
        return _t(self._language, key, **kwargs)

    def _section(self, key: str) -> None:
        self._console.print()
        self._console.print(Text(self._label(key), style="bold"))

    def render(self, host: Host) -> None:
        self._header(host)
        for index, endpoint in enumerate(host.endpoints, start=1):
            self._endpoint_summary(endpoint, index)
            if endpoint.status_message != "Ready":
                self._endpoint_error(endpoint)
                self._console.print(Rule(style="dim"))
                continue
            if endpoint.details is not None:
                self._protocols(endpoint.details.protocols)
                self._suites(endpoint.details.suites)
                self._vulnerabilities(endpoint.details)
                self._certificate(endpoint.details.cert)
            self._console.print(Rule(style="dim"))

    def _header(self, host: Host) -> None:
        body = Text()
        body.append(f"{self._label('domain')}: ")
        body.append(host.host, style="blue")
        body.append(f"\n{self._label('port')}: {host.port}")
        body.append(f"\n{self._label('protocol')}: {host.protocol}")
        if host.test_time > 0:
            tested = _from_millis(host.test_time).strftime("%Y-%m-%d %H:%M:%S")
            body.append(f"\n{self._label('tested_at')}: {tested}")
        body.append(f"\n{self._label('engine')}: {host.engine_version}")
        body.append(f"\n{self._label('criteria')}: {host.criteria_version}")
        self._console.print(Panel(body, title=Text(self._label("title"), style="bold"), border_style="cyan"))

    def _endpoint_summary(self, endpoint: Endpoint, index: int) -> None:
        self._console.print()
        self._console.print(Text(self._label("endpoint", index=index), style="bold"))
        self._console.print(f"{self._label('ip')}: {endpoint.ip_address}", highlight=False, markup=False)
        if endpoint.server_name:
            self._console.print(f"{self._label('server_name')}: {endpoint.server_name}", highlight=False, markup=False)

        grade = Text(f"{self._label('grade')}: ")
        grade.append(endpoint.grade, style=grade_style(endpoint.grade))
        self._console.print(grade)

        if endpoint.grade_trust_ignored and endpoint.grade_trust_ignored != endpoint.grade:
            self._console.print(f"{self._label('grade_trust')}: {endpoint.grade_trust_ignored}", highlight=False, markup=False)
        if endpoint.has_warnings:
            self._console.print(Text(f"⚠ {self._label('warnings')}", style="yellow"))
        if endpoint.is_exceptional:
            self._console.print(Text(f"★ {self._label('exceptional')}", style="green"))
        self._console.print(f"{self._label('duration')}: {endpoint.duration}ms", highlight=False, markup=False)

    def _endpoint_error(self, endpoint: Endpoint) -> None:
        self._console.print()
        self._console.print(Text(f"{self._label('status')}: {endpoint.status_message}", style="red"))
        if endpoint.status_details_message:
            self._console.print(f"{self._label('detail')}: {endpoint.status_details_message}", highlight=False, markup=False)

    def _protocols(self, protocols: list[Protocol]) -> None:
        self._section("protocols")
        if not protocols:
            self._console.print(f"  {self._label('no_protocols')}")
            return
        for protocol in protocols:
            line = Text(f"  • {protocol.name} {protocol.version}: ")
            line.append_text(protocol_status(protocol, self._language))
            self._console.print(line)

    def _suites(self, suites: Suites | None) -> None:
        self._section("suites")
        if suites is None or not suites.items:
            self._console.print(f"  {self._label('no_suites')}")
            return
        if suites.preference:
            self._console.print(f"  {self._label('server_preference')}")

        weak: list[str] = []
        strong: list[str] = []
        for suite in suites.items:
            described = f"{suite.name} ({self._label('strength', bits=suite.cipher_strength)})"
            if suite.q is not None and suite.q == 0:
                weak.append(described)
            elif suite.cipher_strength >= 128:
                strong.append(described)

        self._console.print(f"  {self._label('total_suites')}: {len(suites.items)}", highlight=False, markup=False)
        if weak:
            self._console.print()
            self._console.print(Text(f"  {self._label('weak_suites')}", style="red"))
            for described in weak:
                self._console.print(f"    ✗ {described}", highlight=False, markup=False)
        if strong:
            self._console.print()
            self._console.print(f"  {self._label('strong_suites', limit=_STRONG_SUITES_SHOWN)}")
            for described in strong[:_STRONG_SUITES_SHOWN]:
                self._console.print(f"    ✓ {described}", highlight=False, markup=False)
            if len(strong) > _STRONG_SUITES_SHOWN:
                self._console.print(
                    f"    {self._label('and_more', count=len(strong) - _STRONG_SUITES_SHOWN)}",
                    highlight=False,
                    markup=False,
                )

    def _vulnerabilities(self, details: EndpointDetails) -> None:
        self._section("vulns")
        findings: list[tuple[str, str]] = [
            (name, severity)
            for name, vulnerable, severity in (
                ("Heartbleed (CVE-2014-0160)", details.heartbleed, "critical"),
                ("POODLE (SSLv3)", details.poodle, "high"),
                ("BEAST", details.vuln_beast, "medium"),
                ("FREAK", details.freak, "high"),
                ("Logjam", details.logjam, "high"),
                (self._label("rc4"), details.supports_rc4, "medium"),
            )
            if vulnerable
        ]
        if details.open_ssl_ccs >= 2:
            findings.append(("OpenSSL CCS (CVE-2014-0224)", "critical"))
        if details.poodle_tls == 2:
            findings.append(("POODLE TLS", "high"))

        for name, severity in findings:
            self._console.print(
                Text(f"  ✗ {name} - {self._label('severity')}: {self._label(severity)}", style="red")
            )
        if not findings:
            self._console.print(Text(f"  ✓ {self._label('no_vulns')}", style="green"))

        self._section("features")
        fs = Text(self._label("fs_none"))
        if details.forward_secrecy >= 4:
            fs = Text(self._label("fs_full"), style="green")
        elif details.forward_secrecy >= 2:
            fs = Text(self._label("fs_partial"), style="yellow")
        elif details.forward_secrecy >= 1:
            fs = Text(self._label("fs_limited"), style="yellow")
        self._console.print(Text(f"  {self._label('fs')}: ").append_text(fs))

        if details.hsts_policy is not None:
            hsts = Text(self._label("hsts_off"))
            if details.hsts_policy.status == "present":
                hsts = Text(self._label("hsts_on"), style="green")
                if details.hsts_policy.preload:
                    hsts.append(f" {self._label('hsts_preload')}")
            self._console.print(Text(f"  {self._label('hsts')}: ").append_text(hsts))

        ocsp = (
            Text(self._label("yes"), style="green")
            if details.ocsp_stapling
            else Text(self._label("no"), style="yellow")
        )
        self._console.print(Text(f"  {self._label('ocsp')}: ").append_text(ocsp))

        if details.fallback_scsv:
            scsv = Text(self._label("supported"), style="green")
            self._console.print(Text(f"  {self._label('scsv')}: ").append_text(scsv))

    def _certificate(self, cert: Cert | None) -> None:
        if cert is None:
            return
        if not cert.subject and not cert.issuer_label and not cert.sig_alg:
            return

        self._section("cert")
        if cert.subject:
            self._console.print(f"  {self._label('subject')}: {cert.subject}", highlight=False, markup=False)
        if cert.issuer_label:
            self._console.print(f"  {self._label('issuer')}: {cert.issuer_label}", highlight=False, markup=False)
        if cert.sig_alg:
            self._console.print(f"  {self._label('sig_alg')}: {cert.sig_alg}", highlight=False, markup=False)
        if cert.not_before > 0:
            self._console.print(
                f"  {self._label('valid_from')}: {_from_millis(cert.not_before):%Y-%m-%d}",
                highlight=False,
                markup=False,
            )
        if cert.not_after > 0:
            not_after = _from_millis(cert.not_after)
            self._console.print(f"  {self._label('valid_until')}: {not_after:%Y-%m-%d}", highlight=False, markup=False)
            now = self._now or datetime.now(timezone.utc)
            days_remaining = int((not_after - now).total_seconds() / 86400)
            if not_after < now:
                self._console.print(Text(f"  ⚠ {self._label('expired')}", style="red"))
            elif days_remaining < _EXPIRY_WARNING_DAYS:
                self._console.print(
                    Text(f"  ⚠ {self._label('expires_in', days=days_remaining)}", style="yellow")
                )

        if cert.alt_names:
            shown = ", ".join(cert.alt_names[:_ALT_NAMES_SHOWN])
            self._console.print(f"  {self._label('alt_names')}: {shown}", highlight=False, markup=False)
            if len(cert.alt_names) > _ALT_NAMES_SHOWN:
                self._console.print(
                    f"    {self._label('and_more', count=len(cert.alt_names) - _ALT_NAMES_SHOWN)}",
                    highlight=False,
                    markup=False,
                )

        if cert.issues > 0:
            self._console.print()
            self._console.print(Text(f"  {self._label('cert_issues')}", style="red"))
            for issue in decode_cert_issues(cert.issues, self._language):
                self._console.print(f"    ✗ {issue}", highlight=False, markup=False)


def render_report(
    console: Console,
    host: Host,
    language: Language = Language.ENGLISH,
) -> None:
    ReportRenderer(console, language).render(host)
