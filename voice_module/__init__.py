"""Speech in and out: recognizer backends, the listening session, speech output."""
