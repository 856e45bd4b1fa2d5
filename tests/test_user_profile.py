from datetime import timedelta

from sessioncfg.user_profile import ProfilePic, UserProfile

PIC_KEY = bytes(range(32))
PIC_URL = "http://example.com/avatar"


def test_name_round_trip_and_clear():
    profile = UserProfile()
    assert profile.name is None
    profile.name = "Kallie"
    assert profile.name == "Kallie"
    assert profile.data["n"] == "Kallie"
    profile.name = ""
    assert profile.name is None
    assert "n" not in profile.data


def test_profile_pic_defaults_empty():
    pic = UserProfile().profile_pic
    assert pic.url == ""
    assert pic.key == b""
    assert not pic


def test_set_profile_pic_round_trip():
    profile = UserProfile()
    profile.set_profile_pic(PIC_URL, PIC_KEY)
    pic = profile.profile_pic
    assert pic.url == PIC_URL
    assert pic.key == PIC_KEY
    assert bool(pic)


def test_profile_pic_setter_uses_dataclass():
    profile = UserProfile()
    profile.profile_pic = ProfilePic(url=PIC_URL, key=PIC_KEY)
    assert profile.profile_pic == ProfilePic(url=PIC_URL, key=PIC_KEY)


def test_bad_key_clears_both_fields():
    profile = UserProfile()
    profile.set_profile_pic(PIC_URL, PIC_KEY)
    profile.set_profile_pic(PIC_URL, PIC_KEY[:31])
    assert "p" not in profile.data
    assert "q" not in profile.data


def test_empty_url_clears_both_fields():
    profile = UserProfile()
    profile.set_profile_pic(PIC_URL, PIC_KEY)
    profile.set_profile_pic("", PIC_KEY)
    assert profile.profile_pic == ProfilePic()


def test_nts_priority():
    profile = UserProfile()
    assert profile.nts_priority == 0
    profile.nts_priority = 9
    assert profile.nts_priority == 9
    profile.nts_priority = -1
    assert profile.nts_priority == -1
    profile.nts_priority = 0
    assert "+" not in profile.data


def test_nts_expiry():
    profile = UserProfile()
    assert profile.nts_expiry is None
    profile.nts_expiry = timedelta(days=1)
    assert profile.nts_expiry == timedelta(days=1)
    profile.nts_expiry = timedelta(seconds=-5)
    assert profile.nts_expiry is None
    assert "e" not in profile.data


def test_blinded_msgreqs():
    profile = UserProfile()
    assert profile.blinded_msgreqs is None
    profile.blinded_msgreqs = True
    assert profile.blinded_msgreqs is True
    profile.blinded_msgreqs = False
    assert profile.blinded_msgreqs is False
    assert profile.data["M"] == 0
    profile.blinded_msgreqs = None
    assert profile.blinded_msgreqs is None
    assert "M" not in profile.data