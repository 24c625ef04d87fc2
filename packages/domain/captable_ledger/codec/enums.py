"""Enum dictionaries between portable literals and ledger tags.

Every dictionary is a closed, bijective, immutable table built once at import
time. Unrecognized values raise with code UNKNOWN_ENUM_VALUE; encoding
failures are ValidationErrors (user input), decoding failures are
ParseErrors (unexpected ledger data).

Legacy ledger tags can be registered as decode-only aliases; they never
appear in encoder output.

A dictionary may declare a legacy fallback. Fallbacks are only applied when
strict mode is off (``LedgerBridgeSettings.strict_enums = False``) and every
use is logged.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..config import get_settings
from ..errors import ErrorCode, ParseError, ValidationError

logger = logging.getLogger(__name__)


def resolve_strict(strict: Optional[bool]) -> bool:
    """Explicit ``strict`` wins; otherwise use the configured default."""
    if strict is not None:
        return strict
    return get_settings().strict_enums


class EnumDictionary:
    """Bijective mapping between portable literals and ledger tags.

    Example:
        PERIOD_TYPE.encode("DAYS", "window.period_type")   # 'OcfPeriodDays'
        PERIOD_TYPE.decode("OcfPeriodMonths", "window.period_type")  # 'MONTHS'

    Args:
        name: Human-readable dictionary name used in error messages
        mapping: Portable literal → ledger tag
        aliases: Extra portable spellings accepted on encode only
        tag_aliases: Extra ledger tags accepted on decode only
        fallback_tag: Tag used for unknown literals in lenient mode
        fallback_literal: Literal used for unknown tags in lenient mode
    """

    def __init__(
        self,
        name: str,
        mapping: Dict[str, str],
        aliases: Optional[Dict[str, str]] = None,
        tag_aliases: Optional[Dict[str, str]] = None,
        fallback_tag: Optional[str] = None,
        fallback_literal: Optional[str] = None,
    ):
        reverse = {tag: literal for literal, tag in mapping.items()}
        if len(reverse) != len(mapping):
            raise ValueError(f"Enum dictionary '{name}' is not bijective")
        for alias, target in (aliases or {}).items():
            if target not in mapping:
                raise ValueError(f"Alias '{alias}' of '{name}' targets unknown literal '{target}'")
        for tag, target in (tag_aliases or {}).items():
            if target not in mapping or tag in reverse:
                raise ValueError(f"Tag alias '{tag}' of '{name}' must be a new tag for a known literal")
        if fallback_tag is not None and fallback_tag not in reverse:
            raise ValueError(f"Fallback tag '{fallback_tag}' of '{name}' is not a known tag")
        if fallback_literal is not None and fallback_literal not in mapping:
            raise ValueError(f"Fallback literal '{fallback_literal}' of '{name}' is not a known literal")

        self.name = name
        self._to_ledger: Mapping[str, str] = MappingProxyType(dict(mapping))
        self._to_portable: Mapping[str, str] = MappingProxyType(reverse)
        self._aliases: Mapping[str, str] = MappingProxyType(dict(aliases or {}))
        self._tag_aliases: Mapping[str, str] = MappingProxyType(dict(tag_aliases or {}))
        self._fallback_tag = fallback_tag
        self._fallback_literal = fallback_literal

    @property
    def literals(self) -> Tuple[str, ...]:
        """Known portable literals, in declaration order."""
        return tuple(self._to_ledger)

    @property
    def tags(self) -> Tuple[str, ...]:
        """Known ledger tags, in declaration order."""
        return tuple(self._to_portable)

    def __len__(self) -> int:
        return len(self._to_ledger)

    def __repr__(self) -> str:
        return f"EnumDictionary({self.name!r}, size={len(self)})"

    def encode(self, literal: Any, field_path: str, strict: Optional[bool] = None) -> str:
        """Map a portable literal to its ledger tag.

        Raises:
            ValidationError: UNKNOWN_ENUM_VALUE for unrecognized literals
                (unless a fallback applies in lenient mode)
        """
        if isinstance(literal, str):
            if literal in self._to_ledger:
                return self._to_ledger[literal]
            if literal in self._aliases:
                return self._to_ledger[self._aliases[literal]]
        if self._fallback_tag is not None and not resolve_strict(strict):
            logger.warning(
                "Unknown %s value %r at '%s'; using legacy fallback %s",
                self.name, literal, field_path, self._fallback_tag,
            )
            return self._fallback_tag
        raise ValidationError(
            field_path,
            f"Unknown {self.name} value {literal!r}; expected one of {list(self._to_ledger)}",
            code=ErrorCode.UNKNOWN_ENUM_VALUE,
            expected_type=self.name,
            received_value=literal,
        )

    def decode(self, tag: Any, field_path: str, strict: Optional[bool] = None) -> str:
        """Map a ledger tag back to its portable literal.

        Raises:
            ParseError: UNKNOWN_ENUM_VALUE for unrecognized tags (unless a
                fallback applies in lenient mode)
        """
        if isinstance(tag, str):
            if tag in self._to_portable:
                return self._to_portable[tag]
            if tag in self._tag_aliases:
                return self._tag_aliases[tag]
        if self._fallback_literal is not None and not resolve_strict(strict):
            logger.warning(
                "Unknown %s tag %r at '%s'; using legacy fallback %s",
                self.name, tag, field_path, self._fallback_literal,
            )
            return self._fallback_literal
        raise ParseError(
            f"Unknown {self.name} tag {tag!r} at '{field_path}'",
            source=field_path,
            code=ErrorCode.UNKNOWN_ENUM_VALUE,
            received_value=tag,
        )

    def encode_optional(self, literal: Any, field_path: str, strict: Optional[bool] = None) -> Optional[str]:
        """Encode, mapping None and '' to None."""
        if literal is None or literal == "":
            return None
        return self.encode(literal, field_path, strict)

    def decode_optional(self, tag: Any, field_path: str, strict: Optional[bool] = None) -> Optional[str]:
        """Decode, mapping None to None."""
        if tag is None:
            return None
        return self.decode(tag, field_path, strict)


# =============================================================================
# Stakeholders
# =============================================================================

STAKEHOLDER_TYPE = EnumDictionary("stakeholder type", {
    "INDIVIDUAL": "OcfStakeholderTypeIndividual",
    "INSTITUTION": "OcfStakeholderTypeInstitution",
})

STAKEHOLDER_RELATIONSHIP = EnumDictionary("stakeholder relationship", {
    "EMPLOYEE": "OcfRelEmployee",
    "ADVISOR": "OcfRelAdvisor",
    "INVESTOR": "OcfRelInvestor",
    "FOUNDER": "OcfRelFounder",
    "BOARD_MEMBER": "OcfRelBoardMember",
    "OFFICER": "OcfRelOfficer",
    "OTHER": "OcfRelOther",
})

STAKEHOLDER_STATUS = EnumDictionary("stakeholder status", {
    "ACTIVE": "OcfStakeholderStatusActive",
    "LEAVE_OF_ABSENCE": "OcfStakeholderStatusLeaveOfAbsence",
    "TERMINATION_VOLUNTARY_OTHER": "OcfStakeholderStatusTerminationVoluntaryOther",
    "TERMINATION_VOLUNTARY_GOOD_CAUSE": "OcfStakeholderStatusTerminationVoluntaryGoodCause",
    "TERMINATION_VOLUNTARY_RETIREMENT": "OcfStakeholderStatusTerminationVoluntaryRetirement",
    "TERMINATION_INVOLUNTARY_OTHER": "OcfStakeholderStatusTerminationInvoluntaryOther",
    "TERMINATION_INVOLUNTARY_DEATH": "OcfStakeholderStatusTerminationInvoluntaryDeath",
    "TERMINATION_INVOLUNTARY_DISABILITY": "OcfStakeholderStatusTerminationInvoluntaryDisability",
    "TERMINATION_INVOLUNTARY_WITH_CAUSE": "OcfStakeholderStatusTerminationInvoluntaryWithCause",
})


# =============================================================================
# Contact Details
# =============================================================================

ADDRESS_TYPE = EnumDictionary("address type", {
    "LEGAL": "OcfAddressTypeLegal",
    "CONTACT": "OcfAddressTypeContact",
    "OTHER": "OcfAddressTypeOther",
})

EMAIL_TYPE = EnumDictionary("email type", {
    "PERSONAL": "OcfEmailTypePersonal",
    "BUSINESS": "OcfEmailTypeBusiness",
    "OTHER": "OcfEmailTypeOther",
})

PHONE_TYPE = EnumDictionary("phone type", {
    "HOME": "OcfPhoneHome",
    "MOBILE": "OcfPhoneMobile",
    "BUSINESS": "OcfPhoneBusiness",
    "OTHER": "OcfPhoneOther",
})


# =============================================================================
# Stock Classes and Plans
# =============================================================================

STOCK_CLASS_TYPE = EnumDictionary("stock class type", {
    "COMMON": "OcfStockClassTypeCommon",
    "PREFERRED": "OcfStockClassTypePreferred",
})

AUTHORIZED_SHARES = EnumDictionary("authorized shares", {
    "UNLIMITED": "OcfAuthorizedSharesUnlimited",
    "NOT_APPLICABLE": "OcfAuthorizedSharesNotApplicable",
})

STOCK_CLASS_CONVERSION_MECHANISM = EnumDictionary(
    "stock class conversion mechanism",
    {
        "RATIO_CONVERSION": "OcfConversionMechanismRatioConversion",
        "PERCENT_CONVERSION": "OcfConversionMechanismPercentCapitalizationConversion",
        "FIXED_AMOUNT_CONVERSION": "OcfConversionMechanismFixedAmountConversion",
    },
    fallback_tag="OcfConversionMechanismFixedAmountConversion",
    fallback_literal="FIXED_AMOUNT_CONVERSION",
)

STOCK_CLASS_CONVERSION_TRIGGER = EnumDictionary(
    "stock class conversion trigger",
    {
        "AUTOMATIC_ON_CONDITION": "OcfTriggerTypeAutomaticOnCondition",
        "AUTOMATIC_ON_DATE": "OcfTriggerTypeAutomaticOnDate",
        "ELECTIVE_AT_WILL": "OcfTriggerTypeElectiveAtWill",
        "ELECTIVE_ON_CONDITION": "OcfTriggerTypeElectiveOnCondition",
    },
    aliases={"ELECTIVE_ON_DATE": "ELECTIVE_AT_WILL"},
    tag_aliases={
        "OcfTriggerTypeElectiveInRange": "ELECTIVE_ON_CONDITION",
        "OcfTriggerTypeUnspecified": "ELECTIVE_AT_WILL",
    },
    fallback_tag="OcfTriggerTypeAutomaticOnCondition",
    fallback_literal="AUTOMATIC_ON_CONDITION",
)

PLAN_CANCELLATION_BEHAVIOR = EnumDictionary("stock plan cancellation behavior", {
    "RETIRE": "OcfPlanCancelRetire",
    "RETURN_TO_POOL": "OcfPlanCancelReturnToPool",
    "HOLD_AS_CAPITAL_STOCK": "OcfPlanCancelHoldAsCapitalStock",
    "DEFINED_PER_PLAN_SECURITY": "OcfPlanCancelDefinedPerPlanSecurity",
})

STOCK_ISSUANCE_TYPE = EnumDictionary("stock issuance type", {
    "RSA": "OcfStockIssuanceRSA",
    "FOUNDERS_STOCK": "OcfStockIssuanceFounders",
})

VALUATION_TYPE = EnumDictionary("valuation type", {
    "409A": "OcfValuationType409A",
})

ROUNDING_TYPE = EnumDictionary("rounding type", {
    "NORMAL": "OcfRoundingNormal",
})

QUANTITY_SOURCE = EnumDictionary("quantity source", {
    "HUMAN_ESTIMATED": "OcfQuantityHumanEstimated",
    "MACHINE_ESTIMATED": "OcfQuantityMachineEstimated",
    "INSTRUMENT_FIXED": "OcfQuantityInstrumentFixed",
    "INSTRUMENT_MAX": "OcfQuantityInstrumentMax",
    "INSTRUMENT_MIN": "OcfQuantityInstrumentMin",
    "UNSPECIFIED": "OcfQuantityUnspecified",
})


# =============================================================================
# Equity Compensation
# =============================================================================

COMPENSATION_TYPE = EnumDictionary("compensation type", {
    "OPTION_ISO": "OcfCompensationTypeOptionISO",
    "OPTION_NSO": "OcfCompensationTypeOptionNSO",
    "OPTION": "OcfCompensationTypeOption",
    "RSU": "OcfCompensationTypeRSU",
    "CSAR": "OcfCompensationTypeCSAR",
    "SSAR": "OcfCompensationTypeSSAR",
})

TERMINATION_REASON = EnumDictionary("termination window reason", {
    "VOLUNTARY_OTHER": "OcfTermVoluntaryOther",
    "VOLUNTARY_GOOD_CAUSE": "OcfTermVoluntaryGoodCause",
    "VOLUNTARY_RETIREMENT": "OcfTermVoluntaryRetirement",
    "INVOLUNTARY_OTHER": "OcfTermInvoluntaryOther",
    "INVOLUNTARY_DEATH": "OcfTermInvoluntaryDeath",
    "INVOLUNTARY_DISABILITY": "OcfTermInvoluntaryDisability",
    "INVOLUNTARY_WITH_CAUSE": "OcfTermInvoluntaryWithCause",
})

PERIOD_TYPE = EnumDictionary("period type", {
    "DAYS": "OcfPeriodDays",
    "MONTHS": "OcfPeriodMonths",
})


# =============================================================================
# Vesting
# =============================================================================

ALLOCATION_TYPE = EnumDictionary(
    "allocation type",
    {
        "CUMULATIVE_ROUNDING": "OcfAllocationCumulativeRounding",
        "CUMULATIVE_ROUND_DOWN": "OcfAllocationCumulativeRoundDown",
        "FRONT_LOADED": "OcfAllocationFrontLoaded",
        "BACK_LOADED": "OcfAllocationBackLoaded",
        "FRONT_LOADED_TO_SINGLE_TRANCHE": "OcfAllocationFrontLoadedToSingleTranche",
        "BACK_LOADED_TO_SINGLE_TRANCHE": "OcfAllocationBackLoadedToSingleTranche",
        "FRACTIONAL": "OcfAllocationFractional",
    },
    aliases={
        "FRONT_LOADED_SINGLE_TRANCHE": "FRONT_LOADED_TO_SINGLE_TRANCHE",
        "BACK_LOADED_SINGLE_TRANCHE": "BACK_LOADED_TO_SINGLE_TRANCHE",
    },
)

VESTING_TRIGGER_TYPE = EnumDictionary("vesting trigger type", {
    "VESTING_START_DATE": "OcfVestingStartTrigger",
    "VESTING_SCHEDULE_ABSOLUTE": "OcfVestingScheduleAbsoluteTrigger",
    "VESTING_SCHEDULE_RELATIVE": "OcfVestingScheduleRelativeTrigger",
    "VESTING_EVENT": "OcfVestingEventTrigger",
})

VESTING_PERIOD_TYPE = EnumDictionary(
    "vesting period type",
    {
        "DAYS": "OcfVestingPeriodDays",
        "MONTHS": "OcfVestingPeriodMonths",
    },
    fallback_tag="OcfVestingPeriodDays",
)

VESTING_DAY_OF_MONTH = EnumDictionary(
    "vesting day of month",
    {
        **{f"{day:02d}": f"OcfVestingDay{day:02d}" for day in range(1, 29)},
        "29_OR_LAST_DAY_OF_MONTH": "OcfVestingDay29OrLast",
        "30_OR_LAST_DAY_OF_MONTH": "OcfVestingDay30OrLast",
        "31_OR_LAST_DAY_OF_MONTH": "OcfVestingDay31OrLast",
        "VESTING_START_DAY_OR_LAST_DAY_OF_MONTH": "OcfVestingStartDayOrLast",
    },
    fallback_tag="OcfVestingStartDayOrLast",
    fallback_literal="VESTING_START_DAY_OR_LAST_DAY_OF_MONTH",
)


# =============================================================================
# Convertibles and Warrants
# =============================================================================

CONVERTIBLE_TYPE = EnumDictionary("convertible type", {
    "NOTE": "OcfConvertibleNote",
    "SAFE": "OcfConvertibleSafe",
    "SECURITY": "OcfConvertibleSecurity",
})

CONVERSION_TRIGGER_TYPE = EnumDictionary("conversion trigger type", {
    "AUTOMATIC_ON_CONDITION": "OcfTriggerTypeTypeAutomaticOnCondition",
    "AUTOMATIC_ON_DATE": "OcfTriggerTypeTypeAutomaticOnDate",
    "ELECTIVE_AT_WILL": "OcfTriggerTypeTypeElectiveAtWill",
    "ELECTIVE_ON_CONDITION": "OcfTriggerTypeTypeElectiveOnCondition",
    "ELECTIVE_IN_RANGE": "OcfTriggerTypeTypeElectiveInRange",
    "UNSPECIFIED": "OcfTriggerTypeTypeUnspecified",
})

CONVERTIBLE_MECHANISM = EnumDictionary("convertible conversion mechanism", {
    "SAFE_CONVERSION": "OcfConvMechSAFE",
    "CONVERTIBLE_NOTE_CONVERSION": "OcfConvMechNote",
    "CUSTOM_CONVERSION": "OcfConvMechCustom",
    "FIXED_AMOUNT_CONVERSION": "OcfConvMechFixedAmount",
    "FIXED_PERCENT_OF_CAPITALIZATION_CONVERSION": "OcfConvMechPercentCapitalization",
    "SHARE_PRICE_BASED_CONVERSION": "OcfConvMechSharePriceBased",
    "VALUATION_BASED_CONVERSION": "OcfConvMechValuationBased",
})

WARRANT_MECHANISM = EnumDictionary("warrant conversion mechanism", {
    "CUSTOM_CONVERSION": "OcfWarrantMechanismCustom",
    "FIXED_AMOUNT_CONVERSION": "OcfWarrantMechanismFixedAmount",
    "FIXED_PERCENT_OF_CAPITALIZATION_CONVERSION": "OcfWarrantMechanismPercentCapitalization",
    "SHARE_PRICE_BASED_CONVERSION": "OcfWarrantMechanismSharePriceBased",
    "VALUATION_BASED_CONVERSION": "OcfWarrantMechanismValuationBased",
})

CONVERSION_RIGHT_TYPE = EnumDictionary("conversion right type", {
    "CONVERTIBLE_CONVERSION_RIGHT": "OcfRightConvertible",
    "WARRANT_CONVERSION_RIGHT": "OcfRightWarrant",
})

DAY_COUNT = EnumDictionary("day count convention", {
    "ACTUAL_365": "OcfDayCountActual365",
    "30_360": "OcfDayCount30_360",
})

INTEREST_PAYOUT = EnumDictionary("interest payout", {
    "DEFERRED": "OcfInterestPayoutDeferred",
    "CASH": "OcfInterestPayoutCash",
})

ACCRUAL_PERIOD = EnumDictionary("interest accrual period", {
    "DAILY": "OcfAccrualDaily",
    "MONTHLY": "OcfAccrualMonthly",
    "QUARTERLY": "OcfAccrualQuarterly",
    "SEMI_ANNUAL": "OcfAccrualSemiAnnual",
    "ANNUAL": "OcfAccrualAnnual",
})

COMPOUNDING_TYPE = EnumDictionary("compounding type", {
    "SIMPLE": "OcfSimple",
    "COMPOUNDING": "OcfCompounding",
})

CONVERSION_TIMING = EnumDictionary("conversion timing", {
    "PRE_MONEY": "OcfConversionTimingPreMoney",
    "POST_MONEY": "OcfConversionTimingPostMoney",
})


# =============================================================================
# Object References
# =============================================================================

_REFERENCE_TYPES = [
    ("ISSUER", "OcfObjIssuer"),
    ("STAKEHOLDER", "OcfObjStakeholder"),
    ("STOCK_CLASS", "OcfObjStockClass"),
    ("STOCK_LEGEND_TEMPLATE", "OcfObjStockLegendTemplate"),
    ("STOCK_PLAN", "OcfObjStockPlan"),
    ("VALUATION", "OcfObjValuation"),
    ("VESTING_TERMS", "OcfObjVestingTerms"),
    ("FINANCING", "OcfObjFinancing"),
    ("DOCUMENT", "OcfObjDocument"),
    ("CE_STAKEHOLDER_RELATIONSHIP", "OcfObjCeStakeholderRelationship"),
    ("CE_STAKEHOLDER_STATUS", "OcfObjCeStakeholderStatus"),
]

_TX_REFERENCE_SUFFIXES = [
    "STOCK_ACCEPTANCE", "STOCK_CANCELLATION", "STOCK_CONVERSION", "STOCK_ISSUANCE",
    "STOCK_REISSUANCE", "STOCK_REPURCHASE", "STOCK_RETRACTION", "STOCK_TRANSFER",
    "STOCK_CONSOLIDATION", "STOCK_CLASS_AUTHORIZED_SHARES_ADJUSTMENT",
    "STOCK_CLASS_CONVERSION_RATIO_ADJUSTMENT", "STOCK_CLASS_SPLIT",
    "STOCK_PLAN_POOL_ADJUSTMENT", "STOCK_PLAN_RETURN_TO_POOL",
    "ISSUER_AUTHORIZED_SHARES_ADJUSTMENT",
    "CONVERTIBLE_ACCEPTANCE", "CONVERTIBLE_CANCELLATION", "CONVERTIBLE_CONVERSION",
    "CONVERTIBLE_ISSUANCE", "CONVERTIBLE_RETRACTION", "CONVERTIBLE_TRANSFER",
    "EQUITY_COMPENSATION_ACCEPTANCE", "EQUITY_COMPENSATION_CANCELLATION",
    "EQUITY_COMPENSATION_EXERCISE", "EQUITY_COMPENSATION_ISSUANCE",
    "EQUITY_COMPENSATION_RELEASE", "EQUITY_COMPENSATION_REPRICING",
    "EQUITY_COMPENSATION_RETRACTION", "EQUITY_COMPENSATION_TRANSFER",
    "PLAN_SECURITY_ACCEPTANCE", "PLAN_SECURITY_CANCELLATION", "PLAN_SECURITY_EXERCISE",
    "PLAN_SECURITY_ISSUANCE", "PLAN_SECURITY_RELEASE", "PLAN_SECURITY_RETRACTION",
    "PLAN_SECURITY_TRANSFER",
    "VESTING_ACCELERATION", "VESTING_EVENT", "VESTING_START",
    "WARRANT_ACCEPTANCE", "WARRANT_CANCELLATION", "WARRANT_EXERCISE",
    "WARRANT_ISSUANCE", "WARRANT_RETRACTION", "WARRANT_TRANSFER",
]


def _camel(upper_snake: str) -> str:
    return "".join(part.capitalize() for part in upper_snake.split("_"))


OBJECT_REFERENCE_TYPE = EnumDictionary("object reference type", {
    **dict(_REFERENCE_TYPES),
    **{f"TX_{suffix}": f"OcfObjTx{_camel(suffix)}" for suffix in _TX_REFERENCE_SUFFIXES},
})


ALL_DICTIONARIES: Tuple[EnumDictionary, ...] = (
    STAKEHOLDER_TYPE,
    STAKEHOLDER_RELATIONSHIP,
    STAKEHOLDER_STATUS,
    ADDRESS_TYPE,
    EMAIL_TYPE,
    PHONE_TYPE,
    STOCK_CLASS_TYPE,
    AUTHORIZED_SHARES,
    STOCK_CLASS_CONVERSION_MECHANISM,
    STOCK_CLASS_CONVERSION_TRIGGER,
    PLAN_CANCELLATION_BEHAVIOR,
    STOCK_ISSUANCE_TYPE,
    VALUATION_TYPE,
    ROUNDING_TYPE,
    QUANTITY_SOURCE,
    COMPENSATION_TYPE,
    TERMINATION_REASON,
    PERIOD_TYPE,
    ALLOCATION_TYPE,
    VESTING_TRIGGER_TYPE,
    VESTING_PERIOD_TYPE,
    VESTING_DAY_OF_MONTH,
    CONVERTIBLE_TYPE,
    CONVERSION_TRIGGER_TYPE,
    CONVERTIBLE_MECHANISM,
    WARRANT_MECHANISM,
    CONVERSION_RIGHT_TYPE,
    DAY_COUNT,
    INTEREST_PAYOUT,
    ACCRUAL_PERIOD,
    COMPOUNDING_TYPE,
    CONVERSION_TIMING,
    OBJECT_REFERENCE_TYPE,
)
