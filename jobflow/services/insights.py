from __future__ import annotations

from dataclasses import dataclass

from jobflow.enums import EscalationLevel, ShortageSeverity
from jobflow.services.formatting import format_duration
from jobflow.services.time_balance_calc import ShortageAlert, TimeBalance, WorkingTimeRules


@dataclass(frozen=True)
class PersonalAlert:
    type: str
    message: str
    action: str
    priority: str


@dataclass(frozen=True)
class TeamInsight:
    type: str
    title: str
    value: str
    details: str
    trend: str


def _percent(multiplier: float) -> int:
    return round(multiplier * 100)


def escalation_level(consecutive_weeks_short: int) -> EscalationLevel:
    if consecutive_weeks_short >= 3:
        return EscalationLevel.HIGH
    if consecutive_weeks_short >= 2:
        return EscalationLevel.MEDIUM
    return EscalationLevel.LOW


def personal_recommendations(balance: TimeBalance, rules: WorkingTimeRules) -> list[str]:
    recommendations: list[str] = []
    compensation_balance = balance.compensation_balance
    productivity = balance.productivity

    if balance.shortage_hours > 0:
        recommendations.append(
            f"WAARSCHUWING: Je hebt {format_duration(balance.shortage_hours)} te kort gewerkt deze periode"
        )
        if balance.shortage_hours <= 4:
            recommendations.append("ADVIES: Plan 1-2 extra uren deze week om het tekort in te halen")
        else:
            recommendations.append("URGENT: Plan een inhaaldag om het tekort weg te werken")

    if balance.overtime_hours > 8:
        recommendations.append(
            f"OVERTIME: Je hebt veel overtime gemaakt ({format_duration(balance.overtime_hours)}). "
            "Vergeet niet om te pauzeren!"
        )

    if compensation_balance > 16:
        recommendations.append(
            f"COMPENSATIE: Je hebt {format_duration(compensation_balance)} compensatie uren. Tijd voor een vrije dag?"
        )

    if balance.weekend_hours > 0:
        recommendations.append(
            f"WEEKEND: Je hebt {format_duration(balance.weekend_hours)} weekend uren gemaakt "
            f"({_percent(rules.weekend_multiplier)}% compensatie)"
        )

    if balance.evening_hours > 0:
        recommendations.append(
            f"AVOND: Je hebt {format_duration(balance.evening_hours)} avond uren gemaakt "
            f"({_percent(rules.evening_multiplier)}% compensatie)"
        )

    if productivity is not None:
        if productivity > 110:
            recommendations.append(
                f"UITSTEKEND: Excellente productiviteit ({round(productivity)}%)! "
                "Zorg wel voor goede work-life balance"
            )
        elif productivity < 90:
            recommendations.append(
                f"VERBETERING: Productiviteit kan beter ({round(productivity)}%). "
                "Bespreek eventuele obstakels met je manager"
            )

    if balance.auto_break_deducted > 0:
        recommendations.append(
            f"PAUZES: {format_duration(balance.auto_break_deducted)} automatische pauze afgetrokken. "
            "Vergeet niet handmatig pauzes in te klokken"
        )

    return recommendations


def personal_alerts(balance: TimeBalance) -> list[PersonalAlert]:
    alerts: list[PersonalAlert] = []

    if balance.shortage_hours >= 8:
        alerts.append(
            PersonalAlert(
                type="CRITICAL_SHORTAGE",
                message=f"Kritiek tekort: {format_duration(balance.shortage_hours)}",
                action="Plan inhaaldag deze week",
                priority="HIGH",
            )
        )

    if balance.compensation_balance > 40:
        alerts.append(
            PersonalAlert(
                type="HIGH_COMPENSATION",
                message=f"Hoog compensatie saldo: {format_duration(balance.compensation_balance)}",
                action="Plan vrije dagen om saldo te gebruiken",
                priority="MEDIUM",
            )
        )

    if balance.auto_break_deducted > 2:
        alerts.append(
            PersonalAlert(
                type="MISSING_BREAKS",
                message=f"Veel automatische pauzes: {format_duration(balance.auto_break_deducted)}",
                action="Klok pauzes handmatig in voor nauwkeurigere registratie",
                priority="LOW",
            )
        )

    return alerts


def team_shortage_recommendations(alerts: list[ShortageAlert]) -> list[str]:
    recommendations: list[str] = []
    critical_count = sum(1 for alert in alerts if alert.severity == ShortageSeverity.CRITICAL)
    escalation_count = sum(
        1 for alert in alerts if escalation_level(alert.consecutive_weeks_short) == EscalationLevel.HIGH
    )
    structural_count = sum(1 for alert in alerts if alert.consecutive_weeks_short >= 2)

    if critical_count > 0:
        recommendations.append(
            f"KRITIEK: {critical_count} medewerkers hebben kritieke tekorten - directe actie vereist"
        )
    if escalation_count > 0:
        recommendations.append(
            f"ESCALATIE: {escalation_count} medewerkers vereisen escalatie naar management"
        )
    if len(alerts) > 5:
        recommendations.append(
            f"PLANNING: Hoog aantal tekorten ({len(alerts)}) - evalueer team planning en werkbelasting"
        )
    if structural_count > 0:
        recommendations.append(
            f"STRUCTUREEL: {structural_count} medewerkers hebben structurele tekorten - HR gesprek aanbevolen"
        )
    return recommendations


def compensation_recommendations(balance: float, weekend_hours: float, evening_hours: float) -> list[str]:
    recommendations: list[str] = []

    if balance > 40:
        recommendations.append(f"VERLOF: Hoog compensatie saldo ({format_duration(balance)}) - plan vrije dagen")
    if weekend_hours > 8:
        recommendations.append(
            f"WEEKEND: Veel weekend uren ({format_duration(weekend_hours)}) - zorg voor voldoende rust"
        )
    if evening_hours > 16:
        recommendations.append(
            f"AVOND: Veel avond uren ({format_duration(evening_hours)}) - monitor work-life balance"
        )
    if balance < 8 and (weekend_hours > 0 or evening_hours > 0):
        recommendations.append(
            "CONTROLE: Laag compensatie saldo maar wel toeslag uren - controleer berekening"
        )
    return recommendations


def team_insights(
    balances: list[TimeBalance],
    *,
    average_productivity: float,
    total_overtime_hours: float,
    total_shortage_hours: float,
) -> list[TeamInsight]:
    productivities = [round(b.productivity) for b in balances if b.productivity is not None]
    high_performers = sum(1 for value in productivities if value > 110)
    low_performers = sum(1 for value in productivities if value < 90)
    overtime_users = sum(1 for b in balances if b.overtime_hours > 8)
    shortage_users = sum(1 for b in balances if b.shortage_hours > 4)

    return [
        TeamInsight(
            type="PRODUCTIVITY",
            title="Team Productiviteit",
            value=f"{round(average_productivity)}%",
            details=f"{high_performers} hoge presteerders, {low_performers} onder gemiddelde",
            trend="UP" if average_productivity > 100 else "DOWN",
        ),
        TeamInsight(
            type="OVERTIME",
            title="Overtime Verdeling",
            value=format_duration(total_overtime_hours),
            details=f"{overtime_users} medewerkers met significante overtime",
            trend="UP" if overtime_users > len(balances) * 0.3 else "STABLE",
        ),
        TeamInsight(
            type="SHORTAGE",
            title="Tekorten",
            value=format_duration(total_shortage_hours),
            details=f"{shortage_users} medewerkers met tekorten",
            trend="UP" if shortage_users > 0 else "DOWN",
        ),
    ]
