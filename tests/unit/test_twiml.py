"""Unit tests for voice settings and TwiML rendering."""
from app.services.speech.twiml import TwimlRenderer, escape_xml, hangup_response
from app.services.speech.voice import VoiceSettings
from twiml_helpers import parse_twiml, spoken_text, verbs


class TestVoiceSettings:
    """Test parsing voice parameters from the query string."""

    def test_defaults(self):
        voice = VoiceSettings.from_query({})

        assert voice.language == "en-US"
        assert voice.voice == "Polly.Joanna"
        assert voice.rate == 100
        assert voice.pitch == 0
        assert voice.barge_in is False
        assert voice.domain is None

    def test_numbers_are_clamped(self):
        voice = VoiceSettings.from_query({"rate": "10", "pitch": "12"})
        assert voice.rate == 60
        assert voice.pitch == 6

        voice = VoiceSettings.from_query({"rate": "999", "pitch": "-40"})
        assert voice.rate == 140
        assert voice.pitch == -6

    def test_infinite_numbers_are_clamped(self):
        voice = VoiceSettings.from_query({"rate": "Infinity", "pitch": "-inf"})
        assert voice.rate == 140
        assert voice.pitch == -6

        voice = VoiceSettings.from_query({"rate": "1e400", "pitch": "1e400"})
        assert voice.rate == 140
        assert voice.pitch == 6

    def test_unparseable_numbers_use_defaults(self):
        voice = VoiceSettings.from_query({"rate": "fast", "pitch": "nan"})
        assert voice.rate == 100
        assert voice.pitch == 0

    def test_barge_in_flag(self):
        assert VoiceSettings.from_query({"bargeIn": "1"}).barge_in is True
        assert VoiceSettings.from_query({"bargeIn": "true"}).barge_in is True
        assert VoiceSettings.from_query({"bargeIn": "0"}).barge_in is False

    def test_style_domains(self):
        assert VoiceSettings(style="newscaster").domain == "news"
        assert VoiceSettings(style="conversational").domain == "conversational"
        assert VoiceSettings(style="professional").domain is None

    def test_round_trip_through_query(self):
        voice = VoiceSettings(language="es-US", voice="Polly.Lupe", rate=120, pitch=-2, barge_in=True)
        assert VoiceSettings.from_query(voice.to_query()) == voice


class TestTwimlRenderer:
    """Test generated TwiML documents."""

    def test_ssml_prosody(self):
        renderer = TwimlRenderer(VoiceSettings(rate=110, pitch=2))
        assert renderer.ssml("Hello") == '<prosody rate="110%" pitch="+2st">Hello</prosody>'

        renderer = TwimlRenderer(VoiceSettings(pitch=-3))
        assert 'pitch="-3st"' in renderer.ssml("Hello")

    def test_ssml_domain_and_break_are_well_formed(self):
        renderer = TwimlRenderer(VoiceSettings(style="newscaster"))
        ssml = renderer.ssml("Hi", delay_ms=200)

        assert ssml.startswith('<break time="200ms"/><amazon:domain name="news">')
        assert ssml.endswith("</prosody></amazon:domain>")

    def test_text_is_escaped(self):
        renderer = TwimlRenderer(VoiceSettings())
        ssml = renderer.ssml('Tom & Jerry <3 "quotes"')

        assert "Tom &amp; Jerry &lt;3 &quot;quotes&quot;" in ssml

    def test_gather_document(self):
        renderer = TwimlRenderer(VoiceSettings())
        xml = renderer.gather(
            "Say your name",
            "https://example.com/webhooks/voice/ivr?step=name&lang=en-US",
            {"input": "speech", "timeout": "6"},
        )

        root = parse_twiml(xml)
        gather = root.find("Gather")
        assert gather.get("action") == "https://example.com/webhooks/voice/ivr?step=name&lang=en-US"
        assert gather.get("language") == "en-US"
        assert gather.get("method") == "POST"
        assert root.find("Redirect").text == gather.get("action")
        assert spoken_text(root) == "Say your name"

    def test_dtmf_gather_has_no_language(self):
        renderer = TwimlRenderer(VoiceSettings())
        root = parse_twiml(renderer.gather("Digits", "/x", {"input": "dtmf", "numDigits": "8"}))
        assert root.find("Gather").get("language") is None

    def test_goodbye_hangs_up(self):
        root = parse_twiml(TwimlRenderer(VoiceSettings()).goodbye("Bye"))
        assert verbs(root) == ["Say", "Pause", "Hangup"]

    def test_transfer_dials(self):
        root = parse_twiml(
            TwimlRenderer(VoiceSettings()).transfer("Hold on", "+15551230000", caller_id="+15550000000")
        )
        dial = root.find("Dial")
        assert dial.text == "+15551230000"
        assert dial.get("callerId") == "+15550000000"

    def test_hangup_response(self):
        root = parse_twiml(hangup_response("Goodbye."))
        assert verbs(root) == ["Say", "Hangup"]
        assert root.find("Say").get("voice") == "alice"

    def test_escape_xml(self):
        assert escape_xml("a&b<c>'d'") == "a&amp;b&lt;c&gt;&apos;d&apos;"
