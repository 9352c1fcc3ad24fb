"""
Static creator dataset used when no live discovery source yields anything.
UK phone, tablet and gadget repair creators across follower tiers.
"""
from typing import List

from affiliate_outreach.schemas.creator import CreatorCandidate


def _creator(username: str, followers: int, gmv: float, category: str) -> CreatorCandidate:
    handle = username.lstrip("@")
    return CreatorCandidate(
        username=username,
        display_name=handle,
        follower_count=followers,
        gmv=gmv,
        category=category,
        profile_url=f"https://tiktok.com/@{handle.lower()}",
        source="static_fallback"
    )


FALLBACK_CREATORS: List[CreatorCandidate] = [
    # Electronics & tech repair
    _creator("@PhoneRepairPro_UK", 45000, 2500, "electronics"),
    _creator("@TechFixUK", 78000, 3200, "tech"),
    _creator("@ScreenRepairExpert", 23000, 1800, "mobile"),
    _creator("@GadgetRepairLife", 65000, 4100, "electronics"),
    _creator("@iPhoneFixMaster", 34000, 2100, "mobile"),

    # Smaller creators (1K-10K)
    _creator("@LocalPhoneRepair", 2500, 800, "electronics"),
    _creator("@TechTips_Mini", 4200, 1200, "tech"),
    _creator("@DeviceDoctor", 7800, 1600, "mobile"),
    _creator("@RepairRookie", 1800, 600, "electronics"),
    _creator("@FixItFast_UK", 5600, 1400, "tech"),

    # Medium creators (10K-50K)
    _creator("@MobileRepairMaster", 15600, 2200, "mobile"),
    _creator("@TechReviewsUK", 28900, 3100, "tech"),
    _creator("@ElectronicsGuru", 19400, 2600, "electronics"),
    _creator("@PhoneFixer_London", 31200, 2900, "mobile"),
    _creator("@GadgetRepairTips", 42800, 3800, "tech"),

    # Large creators (50K+)
    _creator("@TechTipsDaily_UK", 89000, 5600, "gadgets"),
    _creator("@RepairShopReviews", 56000, 3400, "electronics"),
    _creator("@UKTechExpert", 73500, 4800, "tech"),
    _creator("@ElectronicsRepairPro", 94200, 6200, "electronics"),

    # Specialised categories
    _creator("@MacRepairSpecialist", 21600, 2800, "computers"),
    _creator("@GameConsoleDoctor", 38400, 3300, "gaming"),
    _creator("@TabletRepairUK", 16800, 2100, "tablets"),
    _creator("@SmartWatchFix", 12400, 1900, "wearables"),
]
