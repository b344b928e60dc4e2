"""Backend for the video sample: access tokens and Twilio Video REST pass-through."""
