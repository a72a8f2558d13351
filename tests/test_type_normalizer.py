from clinic_scheduler.services.type_normalizer import normalize_appointment_type, resolve_appointment_type


class TestNormalizeAppointmentType:
    def test_canonical_key_is_unchanged(self):
        assert normalize_appointment_type("konzultacia") == "konzultacia"

    def test_spoken_phrases_with_and_without_accents(self):
        assert normalize_appointment_type("športová prehliadka") == "sportova_prehliadka"
        assert normalize_appointment_type("SPORTOVA PREHLIADKA") == "sportova_prehliadka"
        assert normalize_appointment_type("  Vstupné  vyšetrenie ") == "vstupne_vysetrenie"
        assert normalize_appointment_type("kontrola") == "kontrolne_vysetrenie"
        assert normalize_appointment_type("Zdravotnícke pomôcky") == "zdravotnicke_pomocky"

    def test_unknown_phrase_passes_through(self):
        assert normalize_appointment_type("masáž") == "masáž"

    def test_none(self):
        assert normalize_appointment_type(None) is None


class TestResolveAppointmentType:
    def test_unknown_lists_available_types(self):
        resolution = resolve_appointment_type("masáž")
        assert not resolution.valid
        assert "konzultacia" in resolution.available_types
        assert "masáž" in resolution.error

    def test_missing(self):
        resolution = resolve_appointment_type("  ")
        assert not resolution.valid
        assert resolution.error == "Appointment type is required"

    def test_valid(self):
        resolution = resolve_appointment_type("vstupne")
        assert resolution.valid
        assert resolution.key == "vstupne_vysetrenie"
