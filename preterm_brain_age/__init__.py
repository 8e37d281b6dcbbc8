"""Brain age, respiration and caffeine analyses for preterm EEG sessions."""
